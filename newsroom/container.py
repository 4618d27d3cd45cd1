"""
Process-wide component wiring.

``build_container`` constructs every long-lived component once from the
settings; ``newsroom.main`` stores the result on ``app.state.container`` and
the dependencies in ``newsroom.dependencies`` hand the pieces to routers.
"""
from dataclasses import dataclass

from newsroom.config import Settings
from newsroom.mailer import Mailer
from newsroom.security import PasswordHasher, TokenCodec
from newsroom.storage import ObjectStorage


@dataclass
class Container:
    token_codec: TokenCodec
    password_hasher: PasswordHasher
    storage: ObjectStorage
    mailer: Mailer


def build_container(settings: Settings) -> Container:
    return Container(
        token_codec=TokenCodec(
            access_secret=settings.JWT_ACCESS_TOKEN_SECRET,
            access_ttl=settings.JWT_ACCESS_TOKEN_EXPIRATION_TIME,
            refresh_secret=settings.JWT_REFRESH_TOKEN_SECRET,
            refresh_ttl=settings.JWT_REFRESH_TOKEN_EXPIRATION_TIME,
            algorithm=settings.JWT_ALGORITHM,
        ),
        password_hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        storage=ObjectStorage(
            bucket=settings.STORAGE_BUCKET_NAME,
            public_url=settings.STORAGE_BUCKET_URL,
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            access_key=settings.STORAGE_ACCESS_KEY,
            secret_key=settings.STORAGE_SECRET_KEY,
            max_size=settings.MAX_UPLOAD_SIZE,
        ),
        mailer=Mailer(
            sender=settings.ROOT_EMAIL,
            region=settings.MAIL_REGION,
            endpoint_url=settings.MAIL_ENDPOINT_URL,
            access_key=settings.MAIL_ACCESS_KEY,
            secret_key=settings.MAIL_SECRET_KEY,
        ),
    )
