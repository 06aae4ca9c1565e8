#!/usr/bin/env python3

"""
Smoke check a running diagnostic server
Usage: python smoke_check.py http://localhost:8080
"""

import sys

import requests

TIMEOUT = 10


def check_endpoint(base_url: str, path: str, method: str = "GET", **kwargs) -> bool:
    """Call one endpoint and print what came back"""
    try:
        response = requests.request(method, f"{base_url}{path}", timeout=TIMEOUT, **kwargs)
    except requests.RequestException as e:
        print(f"❌ {path} error: {e}")
        return False

    if response.status_code != 200:
        print(f"❌ {path} failed: {response.status_code}")
        print(f"   Response: {response.text}")
        return False

    print(f"✅ {path} working")
    for line in response.text.splitlines()[:5]:
        print(f"   {line}")
    return True


def check_echo(base_url: str) -> bool:
    payload = b"smoke-check payload\n"
    try:
        response = requests.post(f"{base_url}/echo", data=payload, timeout=TIMEOUT)
    except requests.RequestException as e:
        print(f"❌ /echo error: {e}")
        return False

    if response.content != payload:
        print(f"❌ /echo returned {response.content!r}, expected {payload!r}")
        return False
    print("✅ /echo round-trips the body")
    return True


def check_healthz_fail(base_url: str) -> bool:
    """Either state is valid, it depends on how long the server has been up"""
    try:
        response = requests.get(f"{base_url}/healthz-fail", timeout=TIMEOUT)
    except requests.RequestException as e:
        print(f"❌ /healthz-fail error: {e}")
        return False

    first_line = response.text.splitlines()[0] if response.text else ""
    if response.status_code == 200 and first_line.startswith("still OK"):
        print(f"✅ /healthz-fail healthy: {first_line}")
        return True
    if response.status_code == 500 and first_line.startswith("failed since"):
        print(f"✅ /healthz-fail failing as expected: {first_line}")
        return True
    print(f"❌ /healthz-fail unexpected response: {response.status_code} {response.text!r}")
    return False


def smoke_check(base_url: str) -> bool:
    """Probe every non-destructive endpoint"""
    base_url = base_url.rstrip("/")
    print(f"🔍 Checking diagnostic server at: {base_url}")
    print("=" * 50)

    results = [
        check_endpoint(base_url, "/"),
        check_endpoint(base_url, "/hostname"),
        check_endpoint(base_url, "/fqdn"),
        check_endpoint(base_url, "/ip"),
        check_endpoint(base_url, "/env"),
        check_endpoint(base_url, "/echoheaders", headers={"X-Smoke-Check": "1"}),
        check_endpoint(base_url, "/healthz"),
        check_echo(base_url),
        check_healthz_fail(base_url),
    ]

    print("\n" + "=" * 50)
    passed = sum(results)
    print(f"🎉 {passed}/{len(results)} checks passed")
    return all(results)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        url = sys.argv[1]
    else:
        url = input("Enter the server URL (e.g., http://localhost:8080): ").strip()

    if not url.startswith("http"):
        url = "http://" + url

    sys.exit(0 if smoke_check(url) else 1)
