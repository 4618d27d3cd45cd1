"""
Transactional mail through Amazon SES.

The SES client is built lazily and its blocking calls run in Starlette's
threadpool, the same way ``newsroom.storage`` talks to S3.
"""
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from newsroom.errors import UnexpectedError

logger = logging.getLogger(__name__)

RESTORE_PASSWORD_SUBJECT = "Restore password"

RESTORE_PASSWORD_HTML = """Hi,<br/>
There was a request to restore your password!<br/>
If you did not make this request then please ignore this email.<br/>
Otherwise, please click this link to change your password:<br/>
<br/>
<b>{url}</b>"""

RESTORE_PASSWORD_TEXT = """Hi,

There was a request to restore your password!
If you did not make this request then please ignore this email.
Otherwise, open this link to change your password:

{url}
"""


class Mailer:
    def __init__(
        self,
        sender: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str = "",
        secret_key: str = "",
    ) -> None:
        self.sender = sender
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key = access_key
        self.secret_key = secret_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "ses",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key or None,
                aws_secret_access_key=self.secret_key or None,
            )
        return self._client

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> str:
        """Send one message and return the SES message id."""
        body = {"Html": {"Data": html, "Charset": "UTF-8"}}
        if text is not None:
            body["Text"] = {"Data": text, "Charset": "UTF-8"}
        try:
            response = await run_in_threadpool(
                self.client.send_email,
                Source=f"Newsroom support <{self.sender}>",
                Destination={"ToAddresses": [to]},
                Message={"Subject": {"Data": subject, "Charset": "UTF-8"}, "Body": body},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Mail %r to %s failed: %s", subject, to, exc)
            raise UnexpectedError(f"Unable to send mail: {exc}") from exc
        logger.info("Sent %r to %s (MessageId: %s)", subject, to, response["MessageId"])
        return response["MessageId"]

    async def send_restore_password_link(self, to: str, url: str) -> str:
        return await self.send(
            to,
            RESTORE_PASSWORD_SUBJECT,
            RESTORE_PASSWORD_HTML.format(url=url),
            RESTORE_PASSWORD_TEXT.format(url=url),
        )
