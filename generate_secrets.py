#!/usr/bin/env python3
"""
Generate secure secrets for the squares score automation service
Run this script to generate SECRET_KEY and the PIPELINE_API_TOKEN that guards
the score trigger and admin API
"""

import secrets


def generate_secrets():
    """Generate secure random keys for the application"""
    print("🔐 Generating secure secrets for squares score automation...")
    print("=" * 50)

    print(f"SECRET_KEY={secrets.token_urlsafe(32)}")
    print(f"PIPELINE_API_TOKEN={secrets.token_urlsafe(32)}")

    print("=" * 50)
    print("📝 Copy these values to your .env file")
    print("🔑 RESEND_API_KEY comes from your Resend dashboard")
    print("⚠️  Keep these secrets secure and never commit them to version control!")


if __name__ == "__main__":
    generate_secrets()
