#!/usr/bin/env python3
"""
msgrelay producer + consumer walkthrough.

Posts messages the way an n8n "HTTP Request" node would (several payload
shapes), then reads them back with cursor polling.

Run with: python examples/webhook_producer.py

Requires: pip install httpx
Relay must be running: msgrelay serve  (http://localhost:8000)
"""

import sys

import httpx

BASE = "http://localhost:8000/api"

PAYLOADS = [
    {"message": "Plain message field"},
    {"body": {"summary": "Structured body", "items": 3}},
    {"content": "Tagged as user", "type": "user"},
    "A bare JSON string",
    {"unrelated": "shape"},
]


def main():
    client = httpx.Client(base_url=BASE, timeout=10)

    try:
        health = client.get("/health").json()
    except httpx.ConnectError:
        print(f"ERROR: Relay not reachable at {BASE}")
        print("Start it with:  msgrelay serve")
        sys.exit(1)
    print(f"Relay {health['version']}: {health['messages']} messages, "
          f"{health['connections']} push clients\n")

    cursor = health["lastTimestamp"]

    print("═" * 60)
    print("STEP 1: Emit messages as a producer")
    print("═" * 60)
    for payload in PAYLOADS:
        resp = client.post("/emit", json=payload)
        data = resp.json()["data"]
        print(f"  {resp.status_code}  [{data['type']}] {data['content']}")

    print("\n" + "═" * 60)
    print(f"STEP 2: Poll from cursor {cursor}")
    print("═" * 60)
    page = client.get("/messages", params={"since": cursor}).json()
    for msg in page["messages"]:
        print(f"  {msg['timestamp']}  [{msg['type']}] {msg['content']}")
    print(f"\nNext cursor: {page['lastTimestamp']}")

    again = client.get("/messages", params={"since": page["lastTimestamp"]}).json()
    print(f"Polling again from it returns {len(again['messages'])} messages.")


if __name__ == "__main__":
    main()
