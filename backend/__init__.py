"""
Humor Flavor Admin - superadmin console over Supabase.

Provides a FastAPI app with server-rendered pages for the dashboard and
the humor flavor manager, plus a JSON API under /api.
"""
