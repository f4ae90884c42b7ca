"""
Planning layer (Meal Planner)

  - assembler.py  : in-memory working plan (generate / edit / query)
  - week_store.py : save / load-with-fallback / status per (week, user)
  - backend.py    : Supabase RPC adapter for the week meal plan tables

The assembler never talks to Supabase; only the week store (through the
backend) does.
"""
