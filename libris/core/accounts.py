import logging
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from libris.core import auth
from libris.core.models import User
from libris.schemas.user import RegisterRequest
from libris.core.exceptions import (
    ValidationError,
    ConflictError,
    AuthenticationError,
    DatabaseInsertError,
)

logger = logging.getLogger(__name__)

REGISTRATION_ALIASES = {
    field.alias: name for name, field in RegisterRequest.model_fields.items() if field.alias
}


def validate_registration(fields: dict) -> dict:
    """Checks a registration against `RegisterRequest`, reporting every
    failing field by its snake_case name.
    """
    try:
        return RegisterRequest.model_validate(fields).model_dump()
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e.errors(), aliases=REGISTRATION_ALIASES)


def profile(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'display_name': user.display_name,
        'firstname': user.firstname,
        'surname': user.surname,
        'middle_initial': user.middle_initial,
        'is_admin': user.is_admin,
    }


class Accounts:

    @classmethod
    def register(cls, session: Session, fields: dict, is_admin: bool = False) -> User:
        values = validate_registration(fields)
        if User.exists(session, values['username']):
            raise ConflictError("Username already exists", field='username')

        user = User(
            username=values['username'],
            password_hash=auth.hash_password(values['password']),
            firstname=values['firstname'],
            surname=values['surname'],
            middle_initial=values['middle_initial'],
            display_name=values['display_name'],
            is_admin=is_admin,
        )
        try:
            session.add(user)
            session.commit()
        except IntegrityError:
            session.rollback()
            raise ConflictError("Username already exists", field='username')
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Failed to register user {values['username']}")
            raise DatabaseInsertError(f"Failed to register user: {e}")
        session.refresh(user)
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    @classmethod
    def login(cls, session: Session, username: str, password: str) -> dict:
        """Returns the user's profile and a signed session token."""
        if not username or not password:
            raise ValidationError([
                {'field': name, 'message': f'{name.capitalize()} is required'}
                for name, value in (('username', username), ('password', password))
                if not value
            ], message='Username and password are required.')

        user = User.exists(session, username.strip())
        if not user or not auth.check_password(user.password_hash, password):
            logger.info(f"Failed login for {username!r}")
            raise AuthenticationError()
        return {
            'user': profile(user),
            'token': auth.create_session_token(user.id, user.is_admin),
        }
