from typing import Annotated

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from docchat.api.auth import get_current_user
from docchat.core.logging import get_logger
from docchat.models.api import AskRequest, AskResponse, SourceRef, UploadAccepted
from docchat.models.documents import AuthenticatedUser
from docchat.services.factory import Services
from docchat.services.ingestion import validate_upload

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["documents"])

CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.post("/upload", response_model=UploadAccepted, status_code=status.HTTP_201_CREATED)
async def upload_document(
    request: Request,
    user: CurrentUser,
    pdf: UploadFile = File(...),
) -> UploadAccepted:
    """Ingest one PDF for the signed-in user.

    Args:
        pdf: The PDF file (multipart field name ``pdf``)
    """
    services = get_services(request)

    # Read one byte past the limit so oversized files are detected without buffering them whole.
    data = await pdf.read(services.max_upload_bytes + 1)
    validate_upload(
        pdf.filename, pdf.content_type, len(data), max_bytes=services.max_upload_bytes
    )

    result = await services.ingestion.ingest_async(data, user.id, pdf.filename)
    return UploadAccepted(source_name=result.source_name, chunk_count=result.chunk_count)


@router.post("/ask", response_model=AskResponse)
def ask_question(body: AskRequest, request: Request, user: CurrentUser) -> AskResponse:
    """Answer a question from the signed-in user's own documents."""
    services = get_services(request)

    context = services.retrieval.retrieve(body.message, user.id)
    answer = services.composer.compose(body.message, context)

    return AskResponse(
        response=answer,
        sources=[
            SourceRef(
                source_name=item.chunk.source_name,
                sequence_index=item.chunk.sequence_index,
                score=item.score,
            )
            for item in context
        ],
    )
