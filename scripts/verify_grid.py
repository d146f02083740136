#!/usr/bin/env python
"""
verify_grid.py - End-to-end check of a running Grid Sorting Service

Uploads a catalog feed and an inventory feed, sorts the job, checks the
grid invariants on the response and downloads the export.

Usage:
    python scripts/verify_grid.py --catalog feed.xml --inventory sabana.csv
        [--base-url http://localhost:8000] [--rules rules.json] [--exclude OJOTA]
"""
import sys
import json
import argparse
import requests
from pathlib import Path

# Default config
DEFAULT_BASE_URL = "http://localhost:8000"
GRID_COLUMNS = 4


def print_result(test_name: str, passed: bool, details: str = ""):
    """Print test result."""
    status = "✅ PASS" if passed else "❌ FAIL"
    print(f"  {status}: {test_name}")
    if details and not passed:
        print(f"         → {details}")


def test_health(base_url: str) -> bool:
    """Test /health endpoint."""
    try:
        r = requests.get(f"{base_url}/health", timeout=5)
        return r.status_code == 200
    except requests.RequestException as e:
        print(f"  Health check error: {e}")
        return False


def upload_feeds(base_url: str, catalog: Path, inventory: Path) -> dict:
    """POST both feeds; returns the job payload or {'error': ...}."""
    with open(catalog, "rb") as c, open(inventory, "rb") as i:
        files = {
            "catalog": (catalog.name, c, "application/xml"),
            "inventory": (inventory.name, i, "text/csv"),
        }
        r = requests.post(f"{base_url}/grid/jobs", files=files, timeout=60)
    if r.status_code != 200:
        return {"error": f"{r.status_code}: {r.text[:200]}"}
    return r.json()


def sort_job(base_url: str, job_id: str, body: dict) -> dict:
    r = requests.post(f"{base_url}/grid/jobs/{job_id}/sort", json=body, timeout=300)
    if r.status_code != 200:
        return {"error": f"{r.status_code}: {r.text[:200]}"}
    return r.json()


def check_rows(ordering: list, allocated: int) -> list:
    """Re-check the hard media rules on the allocated part of the grid."""
    problems = []
    for start in range(0, allocated, GRID_COLUMNS):
        row = ordering[start:min(start + GRID_COLUMNS, allocated)]
        types = [item["media_type"] for item in row]
        for a, b in zip(types, types[1:]):
            if a != "PRODUCT" and b != "PRODUCT":
                problems.append(f"row {start // GRID_COLUMNS}: adjacent visuals")
        if sum(1 for t in types if t != "PRODUCT") > 2:
            problems.append(f"row {start // GRID_COLUMNS}: more than 2 visuals")
        if types.count("VIDEO") > 1:
            problems.append(f"row {start // GRID_COLUMNS}: more than 1 video")
    return problems


def run_all_tests(args) -> bool:
    """Run the end-to-end verification."""
    print("\n" + "="*60)
    print("GRID SORTER VERIFICATION")
    print("="*60 + "\n")

    base_url = args.base_url

    print("[1] Testing /health endpoint...")
    health_ok = test_health(base_url)
    print_result("Health check", health_ok)
    if not health_ok:
        print("\n❌ Server not healthy. Aborting.\n")
        return False

    print()
    print("[2] Uploading feeds...")
    job = upload_feeds(base_url, Path(args.catalog), Path(args.inventory))
    print_result("Job created", "job_id" in job, job.get("error", ""))
    if "job_id" not in job:
        return False
    print(f"  variants={job['variants']} valid={job['valid_variants']} dropped_rows={job['dropped_rows']}")

    print()
    print("[3] Sorting...")
    body = {"excluded_types": args.exclude or None}
    if args.rules:
        with open(args.rules, "r", encoding="utf-8") as f:
            body["rules"] = json.load(f)
    if args.criterion:
        body["criterion"] = args.criterion

    result = sort_job(base_url, job["job_id"], body)
    sorted_ok = "ordering" in result
    print_result("Sort run", sorted_ok, result.get("error", ""))
    if not sorted_ok:
        return False

    ordering = result["ordering"]
    keys = [item["group_key"] for item in ordering]
    all_passed = True

    coverage = len(keys) == job["variants"] and len(set(keys)) == len(keys)
    print_result("Every variant exactly once", coverage, f"{len(keys)} items for {job['variants']} variants")
    all_passed = all_passed and coverage

    allocated = result["sections"]["allocated"] - result["flushed"]
    problems = check_rows(ordering, allocated)
    print_result("Media row rules hold", not problems, "; ".join(problems[:5]))
    all_passed = all_passed and not problems

    print(f"  sections={result['sections']} flushed={result['flushed']}")

    print()
    print("[4] Sorting again (cache)...")
    again = sort_job(base_url, job["job_id"], body)
    same = [item["group_key"] for item in again.get("ordering", [])] == keys
    print_result("Same ordering", same)
    print_result("Served from cache", again.get("cache_hit", False))
    all_passed = all_passed and same

    print()
    print("[5] Exporting...")
    r = requests.get(f"{base_url}/grid/jobs/{job['job_id']}/export", timeout=60)
    export_ok = r.status_code == 200 and r.headers.get("content-type", "").startswith("text/csv")
    print_result("CSV export", export_ok, r.text[:200])
    all_passed = all_passed and export_ok

    if export_ok and args.output:
        Path(args.output).write_bytes(r.content)
        print(f"  Saved to {args.output}")

    print()
    print("="*60)
    if all_passed:
        print("🎉 ALL GRID CHECKS PASSED!")
    else:
        print("⚠️  SOME CHECKS FAILED - Review above")
    print("="*60 + "\n")

    return all_passed


def main():
    parser = argparse.ArgumentParser(description="Grid Sorter Verification Script")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Base URL of API")
    parser.add_argument("--catalog", required=True, help="Catalog feed (.xml)")
    parser.add_argument("--inventory", required=True, help="Inventory feed (.csv)")
    parser.add_argument("--rules", help="JSON file with inline row rules")
    parser.add_argument("--criterion", help="Named criterion")
    parser.add_argument("--exclude", action="append", help="Excluded garment type (repeatable)")
    parser.add_argument("--output", help="Where to save the exported CSV")
    args = parser.parse_args()

    success = run_all_tests(args)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
