#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the SQL store, MongoDB and the assistant endpoint.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from career_connect.core.config import get_settings
from career_connect.db.database import test_database_connection
from career_connect.db.mongodb import test_mongo_connection
from career_connect.services.assistant_client import get_assistant_client


def main():
    settings = get_settings()
    print("=" * 50)
    print("CAREER CONNECT - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] SQL store...")
    if settings.database_url:
        print(f"    URL: {settings.database_url.split('@')[-1]}")
    else:
        print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    print("    CONNECTED" if test_database_connection() else "    FAILED")

    print("\n[2] MongoDB (role profiles)...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    print("    CONNECTED" if test_mongo_connection() else "    FAILED")

    print("\n[3] Assistant endpoint...")
    if settings.assistant_api_key:
        print(f"    Base URL: {settings.assistant_base_url}  Model: {settings.assistant_model}")
        print("    CONNECTED" if get_assistant_client().test_connection() else "    FAILED")
    else:
        print("    API key not configured (assistant will answer 502)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
