from dataclasses import dataclass

from src.domain.entities import User
from src.domain.errors import CoreError


@dataclass
class RegisterInput:
    full_name: str
    email: str
    password: str


@dataclass
class AuthenticateInput:
    email: str
    password: str


@dataclass
class AuthOutput:
    user: User | None = None
    token: str | None = None
    success: bool = False
    error: CoreError | None = None
