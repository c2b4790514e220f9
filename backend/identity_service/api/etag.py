"""Version-based ETags for the optimistic-concurrency fence on users."""

from __future__ import annotations

from flask import Response, request

from identity_service.core.errors import UnprocessableEntity


def version_etag(version: int) -> str:
    """Return the opaque ETag value for a user version."""

    return f"v{int(version)}"


def set_version_etag(response: Response, version: int) -> Response:
    """Attach a strong ``ETag`` header derived from ``version``."""

    response.set_etag(version_etag(version))
    return response


def expected_version_from_if_match() -> int | None:
    """Read the version the client last saw from ``If-Match``.

    Returns ``None`` when the header is absent or ``*``; the update then runs
    against whatever version is current.

    :raises UnprocessableEntity: If the header carries anything other than a
        single version ETag.
    """

    if_match = request.if_match
    if not if_match or if_match.star_tag:
        return None
    tags = list(if_match.as_set(include_weak=True))
    if len(tags) == 1 and tags[0].startswith("v") and tags[0][1:].isdigit():
        return int(tags[0][1:])
    raise UnprocessableEntity(
        "If-Match must carry a single version ETag", details={"header": "If-Match"}
    )
