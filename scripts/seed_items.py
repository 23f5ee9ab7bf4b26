#!/usr/bin/env python3
"""
Seed script: saves the demo phone catalog through the API (no direct ES access).
Run: API must be running.
  python scripts/seed_items.py
  python scripts/seed_items.py --base-url http://localhost:8000/api/v1 --queue
"""

import argparse
import sys

import httpx

API_BASE = "http://localhost:8000/api/v1"

ITEMS = [
    {"id": 1, "title": "小米8", "category": "手机", "brand": "小米", "price": 2299.00, "image_url": "img13.360buyimg.com/12345.jpg"},
    {"id": 2, "title": "荣耀V10", "category": "手机", "brand": "华为", "price": 2799.00, "image_url": "img13.360buyimg.com/111.jpg"},
    {"id": 3, "title": "坚果手机R1", "category": "手机", "brand": "锤子", "price": 3699.00, "image_url": "img13.360buyimg.com/222.jpg"},
    {"id": 4, "title": "华为meta10", "category": "手机", "brand": "华为", "price": 4499.00, "image_url": "img13.360buyimg.com/333.jpg"},
    {"id": 5, "title": "小米Mix2S", "category": "手机", "brand": "小米", "price": 4299.00, "image_url": "img13.360buyimg.com/444.jpg"},
]


def main():
    ap = argparse.ArgumentParser(description="Seed demo items via API")
    ap.add_argument("--base-url", default=API_BASE, help="API base URL")
    ap.add_argument("--queue", action="store_true", help="Import through the Celery worker instead of inline bulk")
    args = ap.parse_args()

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        # First item alone, the rest in one batch
        r = client.post("/items", json=ITEMS[0])
        if r.status_code != 201:
            print(f"Failed to save item 1: {r.status_code} {r.text[:200]}")
            sys.exit(1)

        if args.queue:
            r = client.post("/items/import", json=ITEMS[1:])
            if r.status_code != 202:
                print(f"Failed to enqueue import: {r.status_code} {r.text[:200]}")
                sys.exit(1)
            print(f"Queued {r.json()['submitted']} items (task {r.json()['task_id']}). Ensure Celery worker is running.")
            return

        r = client.post("/items/bulk", json=ITEMS[1:])
        body = r.json()
        if r.status_code == 207:
            print(f"Bulk save partially failed: {body['indexed']} indexed")
            for failure in body["failed"]:
                print(f"  id={failure['id']}: {failure['reason']}")
            sys.exit(1)
        if r.status_code != 200:
            print(f"Bulk save failed: {r.status_code} {r.text[:200]}")
            sys.exit(1)

    print(f"Saved {1 + body['indexed']} items.")
    print("Try: curl -s 'http://localhost:8000/api/v1/search/aggregations/terms?field=brand&metric_field=price'")


if __name__ == "__main__":
    main()
