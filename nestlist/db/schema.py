"""Database schema DDL. All tables use CREATE IF NOT EXISTS for idempotency.

Hierarchy and ordering rules are enforced by the engines, not by
constraints: a move renumbers whole sibling groups inside one
transaction, so (parent_id, position) is not UNIQUE. Foreign keys are
checked at commit because a diff may delete a list before relocating
its entries.
"""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS todos (
    todo_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    pinned INTEGER NOT NULL DEFAULT 0,
    parent_id TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_todos_parent_id ON todos(parent_id);

CREATE TABLE IF NOT EXISTS pinned_lists (
    list_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    is_primary INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS pinned_entries (
    entry_id TEXT PRIMARY KEY,
    list_id TEXT NOT NULL,
    todo_id TEXT NOT NULL UNIQUE,
    position INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (list_id) REFERENCES pinned_lists(list_id) DEFERRABLE INITIALLY DEFERRED,
    FOREIGN KEY (todo_id) REFERENCES todos(todo_id) DEFERRABLE INITIALLY DEFERRED
);

CREATE INDEX IF NOT EXISTS idx_pinned_entries_list_id ON pinned_entries(list_id);

CREATE TABLE IF NOT EXISTS tags (
    tag_id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS todo_tags (
    todo_id TEXT NOT NULL,
    tag_id TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (todo_id, tag_id),
    FOREIGN KEY (todo_id) REFERENCES todos(todo_id) DEFERRABLE INITIALLY DEFERRED,
    FOREIGN KEY (tag_id) REFERENCES tags(tag_id) DEFERRABLE INITIALLY DEFERRED
);

CREATE INDEX IF NOT EXISTS idx_todo_tags_tag_id ON todo_tags(tag_id);
"""
