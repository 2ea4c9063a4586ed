"""CLI helpers for resolving document ids."""

from typing import Iterable

import click

from housedesk.cli.error_handling import fail

SHORT_ID_LENGTH = 8


def short_id(doc_id: str) -> str:
    """Shortened id used in listings."""
    return doc_id[:SHORT_ID_LENGTH]


def resolve_id(ctx: click.Context, kind: str, known_ids: Iterable[str], value: str) -> str:
    """Resolve a full id or a unique id prefix, or exit with a CLI error.

    Args:
        ctx: Click context
        kind: What is being resolved, for the error message
        known_ids: Ids present in the snapshot
        value: Id or prefix typed by the user
    """
    known = list(known_ids)
    if value in known:
        return value

    matches = [doc_id for doc_id in known if doc_id.startswith(value)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        fail(ctx, f"{kind} '{value}' not found")
    fail(ctx, f"{kind} id '{value}' is ambiguous ({len(matches)} matches)")
