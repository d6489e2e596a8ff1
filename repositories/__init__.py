"""Supabase persistence (tables, auth and edge functions)."""
