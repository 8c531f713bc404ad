"""
Integration test script: hits the relay endpoints and verifies responses.

Usage:
    # Fake relay (no provider keys needed):
    python -m story_reader.scripts.fake_relay_server     (terminal 1)
    python -m story_reader.scripts.integration_test      (terminal 2)

    # Real relay:
    python -m story_reader.services.api                  (terminal 1)
    READER_BASE_URL=http://localhost:3000 python -m story_reader.scripts.integration_test

    # Also run a full page through extraction + synthesis:
    python -m story_reader.scripts.integration_test --page page.jpg
"""

import argparse
import base64
import os
import sys

import httpx

BASE = os.getenv("READER_BASE_URL", "http://localhost:3000").rstrip("/")
TIMEOUT = 60.0
passed = 0
failed = 0


def test(name: str, method: str, path: str, body: dict | None = None, expect_status: int = 200,
         checks: dict | None = None, content_type: str | None = None) -> httpx.Response | None:
    global passed, failed
    url = f"{BASE}{path}"
    checks = checks or {}
    try:
        if method == "GET":
            r = httpx.get(url, timeout=TIMEOUT)
        else:
            r = httpx.post(url, json=body or {}, timeout=TIMEOUT)

        if r.status_code != expect_status:
            print(f"  FAIL  {name} — HTTP {r.status_code} (expected {expect_status}): {r.text[:200]}")
            failed += 1
            return None

        if content_type and not r.headers.get("content-type", "").startswith(content_type):
            print(f"  FAIL  {name} — content-type {r.headers.get('content-type')!r}, expected {content_type}")
            failed += 1
            return None

        if checks:
            data = r.json()
            for key, expected in checks.items():
                actual = data.get(key)
                if actual != expected:
                    print(f"  FAIL  {name} — {key}: expected {expected!r}, got {actual!r}")
                    failed += 1
                    return None

        print(f"  OK    {name}")
        passed += 1
        return r

    except httpx.ConnectError:
        print(f"  FAIL  {name} — connection refused (is the relay running?)")
        failed += 1
    except Exception as e:
        print(f"  FAIL  {name} — {type(e).__name__}: {e}")
        failed += 1
    return None


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--page", help="image of a book page to run end to end")
    args = parser.parse_args()

    print(f"\nIntegration tests against {BASE}\n")
    print("--- Health ---")
    test("GET /health", "GET", "/health", checks={"status": "OK"})

    print("\n--- Validation ---")
    test("POST /api/extract-text (no image)", "POST", "/api/extract-text", {},
         expect_status=400, checks={"error": "No image provided"})
    test("POST /api/generate-audio (no text)", "POST", "/api/generate-audio", {},
         expect_status=400, checks={"error": "No text provided"})

    print("\n--- Synthesis ---")
    test("POST /api/generate-audio", "POST", "/api/generate-audio",
         {"text": "The cat sat on the mat."}, content_type="audio/")

    if args.page:
        print("\n--- Full page ---")
        with open(args.page, "rb") as f:
            image = base64.standard_b64encode(f.read()).decode("utf-8")
        r = test("POST /api/extract-text (page)", "POST", "/api/extract-text", {"image": image})
        text = r.json().get("text", "") if r is not None else ""
        print(f"        text: {text[:80]!r}")
        if text.strip():
            test("POST /api/generate-audio (page text)", "POST", "/api/generate-audio",
                 {"text": text}, content_type="audio/")

    # Summary
    total = passed + failed
    print(f"\n{'='*40}")
    print(f"  {passed}/{total} passed, {failed} failed")
    print(f"{'='*40}\n")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
