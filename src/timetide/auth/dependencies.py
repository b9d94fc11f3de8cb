"""FastAPI dependencies for sessions.

## Usage

```python
from fastapi import Depends
from timetide.auth import Session, get_session, require_user

@router.put("/profile")
async def update_profile(data: dict, session: Session = Depends(get_session)):
    session["profile"] = data
    return {"status": "saved"}

@router.get("/me")
async def me(user: dict = Depends(require_user)):
    return user
```
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request, status

from timetide.auth.session import Session


def get_session(request: Request) -> Session:
    """Get the session attached by `SessionMiddleware`."""
    session = request.scope.get("session")
    if not isinstance(session, Session):
        raise RuntimeError("SessionMiddleware must be installed to access the session")
    return session


def require_user(session: Session = Depends(get_session)) -> dict[str, Any]:
    """Get the user stored in the session.

    Raises 401 if no user is logged in.
    """
    user = session.get("user")
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user
