"""
read_load.py: async load script that resolves short URLs

Modes:
  api      POST /redirect {shortUrl}; success is 200 with the post-increment accessCount
  browser  GET /{code} without following; success is 302 with a Location header
  mixed    each request picks one of the two at random

Every successful request increments an access count, so after a run the
counts reported by /url-info add up to the number of successes.

Usage:
  python read_load.py --base http://127.0.0.1:8000 --in urls_created.jsonl --count 15000 --concurrency 200 --mode mixed
"""
import argparse
import asyncio
import json
import random
import time
from collections import Counter
from datetime import datetime, timezone

import httpx

MODES = ("api", "browser", "mixed")


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _load_codes(path):
    codes = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            c = obj.get("code")
            if c:
                codes.append(c)
    return codes


async def _resolve_api(client: httpx.AsyncClient, base: str, code: str) -> bool:
    r = await client.post(f"{base}/redirect", json={"shortUrl": code}, timeout=10)
    return r.status_code == 200 and "redirectUrl" in r.json()


async def _resolve_browser(client: httpx.AsyncClient, base: str, code: str) -> bool:
    r = await client.get(f"{base}/{code}", follow_redirects=False, timeout=10)
    return r.status_code == 302 and bool(r.headers.get("location"))


async def _hit_one(client: httpx.AsyncClient, base: str, code: str, mode: str):
    if mode == "mixed":
        mode = random.choice(("api", "browser"))
    hit = _resolve_api if mode == "api" else _resolve_browser
    try:
        return mode, await hit(client, base, code)
    except httpx.HTTPError:
        return mode, False


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--in", dest="codes_file", default="urls_created.jsonl")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--mode", choices=MODES, default="api")
    args = parser.parse_args()

    codes = _load_codes(args.codes_file)
    if not codes:
        print(f"No codes found in {args.codes_file}. Run write_load.py first.")
        return

    start_iso = _now_iso()
    t0 = time.perf_counter()
    ok = Counter()
    sent = Counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def _task():
            async with sem:
                mode, success = await _hit_one(client, args.base, random.choice(codes), args.mode)
                sent[mode] += 1
                if success:
                    ok[mode] += 1

        await asyncio.gather(*(_task() for _ in range(args.count)))

    dt = time.perf_counter() - t0
    success = sum(ok.values())
    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   reads={args.count}, ok={success}, fail={args.count - success}")
    for mode in sorted(sent):
        print(f"  {mode:<8} sent={sent[mode]}, ok={ok[mode]}")
    if dt > 0:
        print(f"RPS:   {success/dt:.1f} req/s")


if __name__ == "__main__":
    asyncio.run(main())
