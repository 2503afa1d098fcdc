#!/usr/bin/env python3
"""
Health monitoring script for the Markova API
Run this to check the API, its remote credential and the records endpoints
"""

import argparse
import os
import sys
from datetime import datetime

import requests

DEFAULT_BASE_URL = os.getenv("MARKOVA_URL", "http://localhost:8000")
PROBE_USER = os.getenv("MARKOVA_PROBE_USER", "health-probe")

def check_health(base_url):
    """Query /api/health"""
    try:
        response = requests.get(f"{base_url}/api/health", timeout=5)
        elapsed = response.elapsed.total_seconds()
        if response.status_code != 200:
            return {"status": f"⚠️ Issues (HTTP {response.status_code})", "response_time": elapsed}

        data = response.json()
        if data.get("status") == "online":
            status = "✅ Online"
        else:
            status = "🔑 Unauthorized (remote credential missing)"
        return {
            "status": status,
            "response_time": elapsed,
            "node": data.get("node"),
            "engine": data.get("engine")
        }

    except requests.exceptions.ConnectionError:
        return {"status": "❌ Unreachable", "response_time": None}
    except requests.exceptions.Timeout:
        return {"status": "⏱️ Timeout", "response_time": None}
    except ValueError as e:
        return {"status": f"❌ Invalid response: {e}", "response_time": None}

def check_records(base_url):
    """List plans and brand kits as an unprivileged probe user"""
    results = []
    headers = {"X-User-Id": PROBE_USER}
    for path in ("/api/plans", "/api/brand-kits", "/api/campaigns"):
        try:
            response = requests.get(f"{base_url}{path}", headers=headers, timeout=5)
            if response.status_code == 200:
                results.append([path, "✅ OK", f"{len(response.json())} records", f"{response.elapsed.total_seconds():.3f}s"])
            else:
                results.append([path, f"⚠️ HTTP {response.status_code}", "-", f"{response.elapsed.total_seconds():.3f}s"])
        except requests.exceptions.RequestException as e:
            results.append([path, f"❌ {type(e).__name__}", "-", "N/A"])
    return results

def format_table(data, headers):
    """Simple table formatting"""
    col_widths = [max(len(str(row[i])) for row in [headers] + data) for i in range(len(headers))]

    header_row = " | ".join(f"{headers[i]:<{col_widths[i]}}" for i in range(len(headers)))
    separator = "-+-".join("-" * width for width in col_widths)

    print(header_row)
    print(separator)

    for row in data:
        print(" | ".join(f"{str(row[i]):<{col_widths[i]}}" for i in range(len(row))))

def main():
    parser = argparse.ArgumentParser(description="Markova API health check")
    parser.add_argument("--url", default=DEFAULT_BASE_URL, help="Base URL of the API")
    args = parser.parse_args()

    print("🏥 Markova API - Health Check")
    print(f"📅 {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 60)

    health = check_health(args.url)
    print("\n📊 Service Status:")
    format_table([[
        "markova",
        health["status"],
        health.get("node") or "N/A",
        f"{health['response_time']:.3f}s" if health["response_time"] else "N/A"
    ]], ["Service", "Status", "Node", "Response Time"])
    if health.get("engine"):
        print(f"  engine: {health['engine']}")

    if health["response_time"] is None:
        print("\n❌ API is not reachable")
        sys.exit(1)

    print("\n🗄️ Records:")
    records = check_records(args.url)
    format_table(records, ["Endpoint", "Status", "Result", "Response Time"])

    print("\n📝 Summary:")
    records_ok = all("✅" in row[1] for row in records)
    if "✅" in health["status"] and records_ok:
        print("🎉 All systems operational!")
        sys.exit(0)
    elif records_ok:
        print("⚠️ API healthy but generation is unavailable until a credential is configured")
        sys.exit(1)
    else:
        print("❌ Some endpoints have issues")
        sys.exit(1)

if __name__ == "__main__":
    main()
