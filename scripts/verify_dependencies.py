#!/usr/bin/env python3
"""
Dependency Verification Script
Checks that the runtime and test dependencies of career-compass import, and
reports whether the recommendation generator key is configured.

Usage:
    python scripts/verify_dependencies.py            # runtime + test
    python scripts/verify_dependencies.py --runtime  # runtime only
"""

import os
import sys
from importlib import import_module

RUNTIME_DEPENDENCIES = [
    ("claude_agent_sdk", "Claude Agent SDK"),
    ("jinja2", "Jinja2"),
    ("jsonschema", "JSON Schema"),
    ("dotenv", "python-dotenv"),
    ("pydantic", "Pydantic"),
    ("structlog", "Structlog"),
    ("rich", "Rich"),
    ("tenacity", "Tenacity"),
]

TEST_DEPENDENCIES = [
    ("pytest", "Pytest"),
    ("pytest_asyncio", "pytest-asyncio"),
    ("pytest_mock", "pytest-mock"),
]


def check_group(title, dependencies):
    """Import each module of a group and return the display names that failed."""
    failed = []
    print(f"{title}:")
    for module_name, display_name in dependencies:
        try:
            import_module(module_name)
            print(f"  [OK] {display_name}")
        except ImportError as e:
            print(f"  [FAILED] {display_name}: {e}")
            failed.append(display_name)
    return failed


def verify_imports(include_test=True):
    """Verify all dependency groups and exit with 0 on success, 1 on failure."""
    print("Verifying dependencies...\n")

    failed = check_group("Runtime", RUNTIME_DEPENDENCIES)
    if include_test:
        failed += check_group("Test", TEST_DEPENDENCIES)

    print(f"\n{'=' * 60}")
    if not (os.getenv("ANTHROPIC_API_KEY") or "").strip():
        print("[INFO] ANTHROPIC_API_KEY not set: sample recommendations will be used")

    if failed:
        print(f"[ERROR] {len(failed)} dependencies failed:")
        for name in failed:
            print(f"   - {name}")
        sys.exit(1)

    print("[SUCCESS] All dependencies verified successfully!")
    sys.exit(0)


if __name__ == "__main__":
    verify_imports(include_test="--runtime" not in sys.argv[1:])
