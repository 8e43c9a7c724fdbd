"""Current user endpoint.

The client's session gate calls this on every protected view; a 401 here
means there is no usable identity and the view redirects to sign-in.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from booklog.auth.middleware import Viewer, get_viewer
from booklog.responses import success_response

router = APIRouter()


@router.get("/me")
async def get_me(viewer: Annotated[Viewer, Depends(get_viewer)]) -> dict:
    """Get current user information.

    Returns:
        Success envelope with user_id and email.
    """
    return success_response({"user_id": str(viewer.user_id), "email": viewer.email})
