#!/usr/bin/env python3
"""
Validation script for the short link service.
Exercises a live running service end to end.
"""

import argparse
import sys
import time
from datetime import datetime
from typing import Optional

import requests


class ServiceValidator:
    """Validates short link service functionality against a live deployment."""

    def __init__(self, base_url: str = "http://localhost:3000", timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.test_results = []

    def print_header(self, text: str):
        print(f"\n{'='*60}")
        print(f"  {text}")
        print(f"{'='*60}\n")

    def record(self, name: str, passed: bool, details: str = "") -> bool:
        """Record and print one check result."""
        self.test_results.append((name, passed))
        print(f"{'PASS' if passed else 'FAIL'} - {name}")
        if details:
            print(f"       {details}")
        return passed

    def check_health(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/health", timeout=self.timeout)
        except requests.RequestException as e:
            return self.record("Health Check", False, f"Error: {e}")

        if response.status_code != 200:
            return self.record("Health Check", False, f"Status: {response.status_code}")

        data = response.json()
        sweeper = data.get("sweeper") or {}
        details = (
            f"DB: {data.get('database')}, Cache: {data.get('cache')}, "
            f"Sweeper running: {sweeper.get('running', 'N/A')}"
        )
        return self.record("Health Check", data.get("status") == "healthy", details)

    def check_index(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/", timeout=self.timeout)
        except requests.RequestException as e:
            return self.record("Index", False, f"Error: {e}")

        return self.record("Index", response.status_code == 200, f"Body: {response.text[:40]!r}")

    def check_create(self) -> Optional[str]:
        """POST /create; returns the new identifier."""
        target = f"https://example.com/validate/{int(time.time())}"
        try:
            response = self.session.post(f"{self.base_url}/create", json={"url": target}, timeout=self.timeout)
        except requests.RequestException as e:
            self.record("Create Short URL", False, f"Error: {e}")
            return None

        if response.status_code != 201:
            self.record("Create Short URL", False, f"Status: {response.status_code}")
            return None

        identifier = response.json().get("url")
        self.record("Create Short URL", bool(identifier), f"Identifier: {identifier}")
        return identifier

    def check_redirect(self, identifier: str) -> bool:
        try:
            response = self.session.get(
                f"{self.base_url}/{identifier}",
                allow_redirects=False,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return self.record("Redirect", False, f"Error: {e}")

        location = response.headers.get("Location", "")
        return self.record(
            "Redirect",
            300 <= response.status_code < 400 and bool(location),
            f"{response.status_code} -> {location[:50]}" if location else "No Location header",
        )

    def check_info(self, identifier: str) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/urls/{identifier}", timeout=self.timeout)
        except requests.RequestException as e:
            return self.record("Mapping Info", False, f"Error: {e}")

        if response.status_code != 200:
            return self.record("Mapping Info", False, f"Status: {response.status_code}")

        data = response.json()
        has_fields = all(key in data for key in ("identifier", "target", "created_at", "expires_at"))
        return self.record("Mapping Info", has_fields, f"Expires at: {data.get('expires_at')}")

    def check_empty_url_rejected(self) -> bool:
        try:
            response = self.session.post(f"{self.base_url}/create", json={"url": ""}, timeout=self.timeout)
        except requests.RequestException as e:
            return self.record("Empty URL Rejection", False, f"Error: {e}")

        return self.record(
            "Empty URL Rejection",
            response.status_code == 400,
            f"Status: {response.status_code} (expected 400)",
        )

    def check_unknown_identifier(self) -> bool:
        try:
            response = self.session.get(
                f"{self.base_url}/zz_not_there",
                allow_redirects=False,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return self.record("Unknown Identifier", False, f"Error: {e}")

        return self.record(
            "Unknown Identifier",
            response.status_code == 404,
            f"Status: {response.status_code} (expected 404)",
        )

    def check_delete(self, identifier: str) -> bool:
        try:
            response = self.session.delete(f"{self.base_url}/api/urls/{identifier}", timeout=self.timeout)
            gone = self.session.get(
                f"{self.base_url}/{identifier}",
                allow_redirects=False,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return self.record("Delete", False, f"Error: {e}")

        return self.record(
            "Delete",
            response.status_code == 204 and gone.status_code == 404,
            f"Delete: {response.status_code}, then resolve: {gone.status_code}",
        )

    def run_all(self) -> bool:
        """Run all validation checks."""
        self.print_header("Short Link Service Validation")
        print(f"Testing service at: {self.base_url}")
        print(f"Timestamp: {datetime.now().isoformat()}\n")

        if not self.check_health():
            print(f"\nHealth check failed. Make sure the service is accessible at {self.base_url}")
            self.print_summary()
            return False

        self.check_index()

        identifier = self.check_create()
        if identifier:
            self.check_redirect(identifier)
            self.check_info(identifier)
            self.check_delete(identifier)

        self.check_empty_url_rejected()
        self.check_unknown_identifier()

        self.print_summary()
        return all(passed for _, passed in self.test_results)

    def print_summary(self):
        total = len(self.test_results)
        passed = sum(1 for _, p in self.test_results if p)

        self.print_header("Summary")
        print(f"Total:  {total}")
        print(f"Passed: {passed}")
        print(f"Failed: {total - passed}")

        failed = [name for name, p in self.test_results if not p]
        if failed:
            print("\nFailed checks:")
            for name in failed:
                print(f"   - {name}")
        print()


def main():
    parser = argparse.ArgumentParser(description="Validate a running short link service")
    parser.add_argument(
        "--url",
        default="http://localhost:3000",
        help="Base URL of the service (default: http://localhost:3000)",
    )
    parser.add_argument("--timeout", type=float, default=5.0, help="Per-request timeout in seconds")
    args = parser.parse_args()

    validator = ServiceValidator(args.url, timeout=args.timeout)

    try:
        success = validator.run_all()
    except KeyboardInterrupt:
        print("\nValidation interrupted by user")
        sys.exit(2)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
