"""Service de checkout multi-vendeurs (FastAPI + Supabase)."""
