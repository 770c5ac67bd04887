#!/usr/bin/env python3
"""
Setup Verification Script

Validates configuration and connections before running the application.
Run this after setting up your .env file.

Usage:
    python scripts/verify_setup.py
"""

import asyncio
import importlib.util
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv
load_dotenv()


def print_header(title: str) -> None:
    """Print section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print(f"{'='*60}")


def print_result(name: str, success: bool, message: str = "") -> None:
    """Print check result."""
    status = "[PASS]" if success else "[FAIL]"
    color = "\033[92m" if success else "\033[91m"
    reset = "\033[0m"
    msg = f" - {message}" if message else ""
    print(f"  {color}{status}{reset} {name}{msg}")


def mask(value: str) -> str:
    return f"{value[:4]}...{value[-4:]}" if len(value) > 12 else "***"


def check_env_file() -> bool:
    env_path = project_root / ".env"
    exists = env_path.exists()
    if not exists:
        print_result(".env file", False, "File not found. Copy .env.example to .env")
    else:
        print_result(".env file", True, "Found")
    return exists


def check_settings():
    """Load settings and report the values that matter."""
    from therapist_checkin.config import Settings

    settings = Settings()

    if settings.api_token == "dev-api-token-change-in-production":
        print_result("API_TOKEN", not settings.is_production, "Using dev token (change for production!)")
    else:
        print_result("API_TOKEN", True, f"Set ({mask(settings.api_token)})")

    print_result("STORAGE_BACKEND", True, settings.storage_backend)
    if settings.storage_backend == "sql":
        print_result("DATABASE_URL", True, settings.database_url.split("@")[-1])

    print_result(
        "Email transport",
        settings.email_configured,
        "Resend" if settings.email_configured else "RESEND_API_KEY not set - emails only logged",
    )
    print_result(
        "SMS transport",
        settings.sms_configured,
        "Twilio" if settings.sms_configured else "Twilio not configured - SMS only logged",
    )

    return settings


async def check_database(settings) -> bool:
    """Verify database connection."""
    from therapist_checkin.infra.database import (
        check_db_health,
        close_db,
        create_engine,
        create_session_factory,
    )

    engine = create_engine(settings)
    try:
        healthy = await check_db_health(create_session_factory(engine))
    finally:
        await close_db(engine)

    print_result("Database", healthy, "Connection successful" if healthy else "Connection failed")
    return healthy


async def check_redis(settings) -> bool:
    """Verify Redis connection."""
    from therapist_checkin.infra.redis import RedisClient, check_redis_health

    client = RedisClient(settings.redis_url)
    try:
        healthy = await check_redis_health(client)
    finally:
        await client.close()

    if healthy:
        print_result("Redis", True, "Connection successful")
    else:
        print_result("Redis", False, "Connection failed (rate limiting fails open)")
    return healthy


def check_dependencies() -> bool:
    """Every runtime import the service needs must resolve."""
    modules = ("fastapi", "uvicorn", "pydantic_settings", "sqlalchemy", "asyncpg", "redis", "httpx")
    missing = [name for name in modules if importlib.util.find_spec(name) is None]

    print_result(
        "Python packages",
        not missing,
        f"Missing: {', '.join(missing)}" if missing else "All required packages installed",
    )
    return not missing


async def main() -> int:
    """Run all verification checks."""
    print_header("Therapist Check-in - Setup Verification")

    print_header("Environment File")
    check_env_file()

    print_header("Python Dependencies")
    if not check_dependencies():
        return 1

    print_header("Configuration")
    settings = check_settings()

    print_header("Service Connections")
    critical_failed = False

    if settings.storage_backend == "sql":
        if not await check_database(settings):
            critical_failed = True
    else:
        print_result("Database", True, "Skipped - in-memory storage")

    if settings.rate_limit_enabled:
        await check_redis(settings)  # Non-critical
    else:
        print_result("Redis", True, "Skipped - rate limiting disabled")

    print_header("Summary")

    if critical_failed:
        print("\n  \033[91mCRITICAL: Database is not reachable.\033[0m")
        print("  Check DATABASE_URL or set STORAGE_BACKEND=memory for local runs.")
        print()
        return 1

    print("\n  \033[92mAll checks passed!\033[0m")
    print("  You can start the application with:")
    print("    uvicorn therapist_checkin.main:app --reload")
    print()
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
