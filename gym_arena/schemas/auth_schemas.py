from pydantic import BaseModel
from typing import Optional

class TokenData(BaseModel):
    # 'sub' of the token issued by the gym's auth service
    user_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
