#!/usr/bin/env python3
"""
Add the suggests.selected_words column to an existing database and print both table layouts.
"""
from __future__ import annotations

import argparse
import os
import sqlite3
from pathlib import Path

from textsaver.store import add_selected_words_column, connect_sqlite, table_info


def update_schema(conn: sqlite3.Connection) -> bool:
    print("Updating database schema...")
    added = add_selected_words_column(conn)
    if added:
        print("Added selected_words column to suggests table")
    else:
        print("Column selected_words already exists")
    return added


def show_schema(conn: sqlite3.Connection) -> None:
    print("\n=== UPDATED DATABASE SCHEMA ===\n")
    for title, table in (("SUGGESTS", "suggests"), ("ASKS", "asks")):
        print(f"--- {title} TABLE STRUCTURE ---")
        for col in table_info(conn, table):
            print(f"Column: {col['name']} ({col['type']})")
        print()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Migrate the Text Saver database schema.")
    parser.add_argument(
        "--db",
        default=os.environ.get("DATABASE_PATH", "database.sqlite"),
        help="Path to the SQLite database",
    )
    args = parser.parse_args(argv)

    db_path = Path(args.db).expanduser().resolve()
    if not db_path.exists():
        raise SystemExit(f"Missing db: {db_path}")

    conn = connect_sqlite(db_path)
    try:
        try:
            update_schema(conn)
        except sqlite3.Error as exc:
            raise SystemExit(f"Error adding column: {exc}")
        show_schema(conn)
    finally:
        conn.close()
    print("Database connection closed.")


if __name__ == "__main__":
    main()
