"""
Generated outputs: creation (called by the generation pipeline on behalf of the
caller) and gated retrieval. Unknown ids and other users' outputs both answer 404.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_override, get_requester
from app.db.session import get_db
from app.paywall.errors import MissingRequesterIdentityError
from app.paywall.models import Requester
from app.schemas.outputs import OutputCreateIn, OutputCreateOut, OutputOut
from app.services.outputs.service import OutputService

router = APIRouter(prefix="/api/outputs", tags=["outputs"])

NOT_FOUND_DETAIL = "Output not found"


@router.post("", response_model=OutputCreateOut, status_code=status.HTTP_201_CREATED)
def create_output(
    body: OutputCreateIn,
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    override: bool = Depends(get_override),
) -> OutputCreateOut:
    service = OutputService(db)
    try:
        result = service.store_and_return(
            body.full_text,
            body.output_type,
            requester,
            override=override,
            metadata=body.metadata,
        )
    except MissingRequesterIdentityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return OutputCreateOut(**result.model_dump())


@router.get("", response_model=list[OutputOut])
def list_my_outputs(
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    override: bool = Depends(get_override),
) -> list[OutputOut]:
    """Newest first. Anonymous callers have no listing; their outputs are reachable by id."""
    if not requester.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"code": "not_authenticated"})
    service = OutputService(db)
    items: list[OutputOut] = []
    for output in service.list_by_user(requester.user_id):
        decision = service.get_if_authorized(output.output_id, requester, override=override)
        if decision is None:
            continue
        items.append(
            OutputOut(
                output_id=output.output_id,
                content=decision.content or "",
                authorized=decision.authorized,
                output_type=decision.output_type,
            )
        )
    return items


@router.get("/{output_id}", response_model=OutputOut)
def get_output(
    output_id: str,
    db: Session = Depends(get_db),
    requester: Requester = Depends(get_requester),
    override: bool = Depends(get_override),
) -> OutputOut:
    decision = OutputService(db).get_if_authorized(output_id, requester, override=override)
    if decision is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    return OutputOut(
        output_id=output_id,
        content=decision.content or "",
        authorized=decision.authorized,
        output_type=decision.output_type,
    )
