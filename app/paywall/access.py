"""
Decision only: decide_access(output, requester, override) -> AccessResult.
Pure function, no I/O, no settings/env/header reads. override is resolved by
app.paywall.override outside the core and passed in.

Order (first match wins):
1. override                                   -> any available content, authorized
2. session-owned (anonymous origin)           -> preview, never upgraded
3. user-owned, requester is someone else      -> denied (API answers "not found")
4. user-owned, same user, pro, full retained  -> full, authorized
5. everything else                            -> preview
"""
from __future__ import annotations

from app.paywall.models import AccessResult, OutputRecord, Requester, SessionOwner, UserOwner


def decide_access(output: OutputRecord, requester: Requester, override: bool = False) -> AccessResult:
    if override:
        return AccessResult(
            content=output.full_content or output.preview_content,
            authorized=True,
            output_type=output.output_type,
        )

    # No full text was ever persisted for anonymous outputs; a pro requester changes nothing
    if isinstance(output.owner, SessionOwner):
        return _preview(output)

    if isinstance(output.owner, UserOwner):
        if requester.user_id != output.owner.user_id:
            return AccessResult(content=None, authorized=False, output_type=output.output_type, denied=True)
        if requester.is_pro and output.full_content:
            return AccessResult(
                content=output.full_content,
                authorized=True,
                output_type=output.output_type,
            )

    return _preview(output)


def _preview(output: OutputRecord) -> AccessResult:
    return AccessResult(
        content=output.preview_content,
        authorized=False,
        output_type=output.output_type,
    )
