"""Authentication middleware and dependencies"""
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional, Dict
from sitewise.config import get_settings
import httpx
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[Dict]:
    """
    Verify Supabase JWT token via Supabase Auth API
    """
    if not credentials:
        return None

    settings = get_settings()
    token = credentials.credentials

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                f"{settings.supabase_url}/auth/v1/user",
                headers={
                    "Authorization": f"Bearer {token}",
                    "apikey": settings.supabase_anon_key
                }
            )

        if response.status_code != 200:
            logger.warning(f"Supabase auth failed: {response.status_code}")
            raise HTTPException(status_code=401, detail="Invalid authentication token")

        user_data = response.json()
        return {
            "user_id": user_data.get("id"),
            "email": user_data.get("email"),
            "role": user_data.get("role")
        }
    except httpx.RequestError:
        raise HTTPException(status_code=401, detail="Authentication service unavailable")
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid authentication token")


async def get_current_user(
    auth_data: Optional[Dict] = Depends(verify_token)
) -> Dict:
    """
    Get current authenticated dashboard user

    Raises:
        HTTPException: If not authenticated
    """
    if not auth_data or not auth_data.get("user_id"):
        raise HTTPException(status_code=401, detail="Not authenticated")

    return auth_data
