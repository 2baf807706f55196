"""Submission of disc records to a CDDB submit server."""

import logging
import urllib.request
from urllib.error import HTTPError, URLError

from cddbkit.config import CLIENT_NAME, CLIENT_VERSION, ClientConfig
from cddbkit.models.disc import Disc
from cddbkit.models.enums import LookupStatus, ResponseCode, SubmitMode
from cddbkit.models.results import SubmitResult

logger = logging.getLogger(__name__)

SUBMIT_CHARSET = "ISO-8859-1"
SUBMIT_NOTE = f"Sent by {CLIENT_NAME} {CLIENT_VERSION}"


class DiscSubmitter:
    """POST serialized disc records to the submit CGI.

    The server answers with a single status line::

        200 OK, submission has been sent.
        500 Missing required header information.
        501 Invalid header information [details].

    Example:
        >>> submitter = DiscSubmitter(ClientConfig(email="me@example.com"))
        >>> result = submitter.submit(disc, mode=SubmitMode.TEST)
        >>> result.accepted
        True
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        self._config = config or ClientConfig()

    @property
    def url(self) -> str:
        cfg = self._config
        return f"http://{cfg.submit_server}:{cfg.submit_port}{cfg.submit_uri}"

    def build_request(
        self, disc: Disc, email: str, mode: SubmitMode
    ) -> urllib.request.Request:
        """Build the submission request for a disc."""
        body = disc.to_record().encode("latin-1", errors="replace")
        headers = {
            "Category": disc.category,
            "Discid": disc.disc_id.strip(),
            "User-Email": email,
            "Submit-Mode": str(mode),
            "Charset": SUBMIT_CHARSET,
            "X-Cddbd-Note": SUBMIT_NOTE,
            "Content-Length": str(len(body)),
            "Content-Type": "text/plain",
        }
        return urllib.request.Request(self.url, data=body, headers=headers, method="POST")

    def submit(
        self,
        disc: Disc,
        email: str | None = None,
        mode: SubmitMode = SubmitMode.SUBMIT,
    ) -> SubmitResult:
        """Submit a disc record.

        Args:
            disc: Disc to submit. Its category and disc ID are sent as headers.
            email: Submitter address. Falls back to the configured email.
            mode: ``test`` asks the server to validate without storing.

        Returns:
            FOUND when the server accepted the record, FAILED otherwise with
            the server's message.
        """
        email = email or self._config.email
        if not email:
            return SubmitResult(
                status=LookupStatus.FAILED,
                message="An email address is required to submit a disc",
            )

        request = self.build_request(disc, email, mode)
        logger.info(
            "Submitting %s/%s to %s (%s)",
            disc.category,
            disc.disc_id.strip(),
            self.url,
            mode,
        )
        try:
            with urllib.request.urlopen(request, timeout=self._config.timeout) as response:
                text = response.read().decode("latin-1")
        except (HTTPError, URLError, OSError, TimeoutError) as e:
            logger.warning("Submit to %s failed: %s", self.url, e)
            return SubmitResult(status=LookupStatus.FAILED, message=str(e))

        line = text.strip().splitlines()[0] if text.strip() else ""
        code = int(line[:3]) if line[:3].isdigit() else None
        message = line[4:].strip(" .\n\r\t") if code is not None else line
        if code == ResponseCode.OK:
            return SubmitResult(status=LookupStatus.FOUND, code=code, message=message)

        logger.warning("Submit rejected by %s: %s", self.url, line)
        return SubmitResult(
            status=LookupStatus.FAILED,
            code=code,
            message=f"Submit failed, CDDB server said: {message or line}",
        )
