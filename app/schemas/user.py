"""User schemas."""
from pydantic import BaseModel, ConfigDict, EmailStr


class UserCreate(BaseModel):
    username: str
    email: EmailStr
    firstname: str | None = None
    lastname: str | None = None
    avatar: str | None = None
    is_active: bool = True
    # Seulement pour les clés système; sinon l'organisation de la clé s'applique.
    organization_id: int | None = None


class UserRead(BaseModel):
    id: int
    organization_id: int
    username: str
    email: EmailStr
    firstname: str | None = None
    lastname: str | None = None
    avatar: str | None = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
