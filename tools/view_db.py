#!/usr/bin/env python3
"""
Print every row of the asks and suggests tables, newest first.
"""
from __future__ import annotations

import argparse
import os
from pathlib import Path

from textsaver.store import Store


def print_asks(store: Store) -> None:
    print("--- ASKS TABLE ---")
    rows = store.all_asks()
    if not rows:
        print("No asks data yet")
        return
    for i, row in enumerate(rows, start=1):
        print(f"\nAsk #{i}:")
        print(f"ID: {row['id']}")
        print(f"User Prompt: {row['user_prompt']}")
        print(f"OpenAI Response: {row['openai_response']}")
        print(f"Created: {row['created_at']}")
        print("---")


def print_suggests(store: Store) -> None:
    print("\n--- SUGGESTS TABLE ---")
    rows = store.all_suggests()
    if not rows:
        print("No suggests data yet")
        return
    for i, row in enumerate(rows, start=1):
        print(f"\nSuggest #{i}:")
        print(f"ID: {row['id']}")
        print(f"User Prompt: {row['user_prompt']}")
        print(f"OpenAI Words: {row['openai_words']}")
        print(f"Selected Words: {row.get('selected_words') or 'None selected'}")
        print(f"Created: {row['created_at']}")
        print("---")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Dump the Text Saver database.")
    parser.add_argument(
        "--db",
        default=os.environ.get("DATABASE_PATH", "database.sqlite"),
        help="Path to the SQLite database",
    )
    args = parser.parse_args(argv)

    db_path = Path(args.db).expanduser().resolve()
    if not db_path.exists():
        raise SystemExit(f"Missing db: {db_path}")

    store = Store(db_path)
    try:
        print("\n=== DATABASE CONTENTS ===\n")
        print_asks(store)
        print_suggests(store)
    finally:
        store.close()
    print("\nDatabase connection closed.")


if __name__ == "__main__":
    main()
