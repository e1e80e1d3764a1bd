import logging

from src.domain.entities import User, is_valid_email, normalize_email
from src.domain.errors import CoreError
from src.ports.repo import DuplicateKeyError
from src.rules.models import PasswordHashingRules

from .models import AuthenticateInput, AuthOutput, RegisterInput
from .ports import PasswordHasherPort, TimePort, TokenIssuerPort, UserRepoPort

logger = logging.getLogger(__name__)

USER_EXISTS = "User already exists."
INVALID_CREDENTIALS = "Invalid email or password."


def _validate_registration(inp: RegisterInput, min_length: int) -> CoreError | None:
    if not inp.full_name.strip():
        return CoreError.validation("Full name is required", field="full_name")
    if not is_valid_email(inp.email):
        return CoreError.validation("Email address is not valid", field="email")
    if len(inp.password) < min_length:
        return CoreError.validation(
            f"Password must be at least {min_length} characters", field="password"
        )
    return None


def _issue(user: User, tokens: TokenIssuerPort) -> AuthOutput:
    issued = tokens.issue(user.id, user.email, user.full_name)
    if not issued.success:
        return AuthOutput(success=False, error=issued.error)
    return AuthOutput(user=user, token=issued.token, success=True)


def run_register(
    inp: RegisterInput,
    user_repo: UserRepoPort,
    hasher: PasswordHasherPort,
    tokens: TokenIssuerPort,
    time: TimePort,
    rules: PasswordHashingRules | None = None,
) -> AuthOutput:
    rules = rules or PasswordHashingRules()

    error = _validate_registration(inp, rules.min_length)
    if error:
        return AuthOutput(success=False, error=error)

    email = normalize_email(inp.email)
    if user_repo.get_by_email(email):
        return AuthOutput(success=False, error=CoreError.conflict(USER_EXISTS, field="email"))

    now = time.now_utc()
    user = User(
        email=email,
        full_name=inp.full_name.strip(),
        password_hash=hasher.hash_password(inp.password),
        is_admin=False,
        created_at=now,
        updated_at=now,
    )

    try:
        user_repo.insert(user)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration
        return AuthOutput(success=False, error=CoreError.conflict(USER_EXISTS, field="email"))

    logger.info("Registered user %s", user.id)
    return _issue(user, tokens)


def run_authenticate(
    inp: AuthenticateInput,
    user_repo: UserRepoPort,
    hasher: PasswordHasherPort,
    tokens: TokenIssuerPort,
) -> AuthOutput:
    user = user_repo.get_by_email(normalize_email(inp.email))
    if not user:
        hasher.dummy_verify()
        logger.info("Failed login for %s", normalize_email(inp.email))
        return AuthOutput(success=False, error=CoreError.unauthenticated(INVALID_CREDENTIALS))

    if not hasher.verify_password(inp.password, user.password_hash):
        logger.info("Failed login for %s", user.email)
        return AuthOutput(success=False, error=CoreError.unauthenticated(INVALID_CREDENTIALS))

    return _issue(user, tokens)


def run(
    inp: RegisterInput | AuthenticateInput,
    *,
    user_repo: UserRepoPort,
    hasher: PasswordHasherPort,
    tokens: TokenIssuerPort,
    time: TimePort | None = None,
    rules: PasswordHashingRules | None = None,
) -> AuthOutput:
    if isinstance(inp, RegisterInput):
        assert time
        return run_register(inp, user_repo, hasher, tokens, time, rules)

    elif isinstance(inp, AuthenticateInput):
        return run_authenticate(inp, user_repo, hasher, tokens)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
