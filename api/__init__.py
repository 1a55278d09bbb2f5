"""Serverless entry point (Vercel)."""
