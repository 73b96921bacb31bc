"""Contract client implementations used by the reconciliation pipeline."""

from __future__ import annotations

import base64
import dataclasses
import re
import typing as typ

import httpx
import msgspec

from .errors import (
    ApplicationError,
    ApplicationNotFoundError,
    ApplicationOtherError,
    ChainConfigError,
    ContractCallError,
    ResponseShapeError,
    SigningError,
    TransportError,
)

if typ.TYPE_CHECKING:
    from .config import LcdConfig
    from .signing import TransactionSigner


@dataclasses.dataclass(frozen=True, slots=True)
class TxResult:
    """Outcome of a broadcast transaction accepted by the chain."""

    txhash: str
    height: int | None = None
    raw_log: str = ""


class ContractClient(typ.Protocol):
    """Interface for reading from and writing to CosmWasm contracts."""

    async def query(
        self, contract_address: str, message: dict[str, typ.Any]
    ) -> typ.Any:  # noqa: ANN401 - contract responses are free-form JSON
        """Run a read-only smart query and return the decoded response."""
        ...

    async def execute(
        self,
        contract_address: str,
        sender: str,
        message: dict[str, typ.Any],
    ) -> TxResult:
        """Submit a state-changing execute message from ``sender``."""
        ...


_HTTP_ERROR_STATUS_THRESHOLD = 400
# Gateway, throttling and timeout statuses never carry a contract answer.
_TRANSPORT_STATUSES = frozenset({408, 429, 502, 503, 504})

_GRPC_FRAMING = re.compile(r"^rpc error: code = \w+ desc = ")
_WASM_QUERY_FRAMING = ": query wasm contract failed"
_NOT_FOUND_SUFFIX = " not found"

_QUERY_PATH = "/cosmwasm/wasm/v1/contract/{address}/smart/{query}"
_BROADCAST_PATH = "/cosmos/tx/v1beta1/txs"
_BROADCAST_MODE = "BROADCAST_MODE_SYNC"


def _split_contract_error(message: str) -> tuple[str, bool]:
    """Strip gateway framing from an error message.

    Returns ``(text, from_contract)`` where ``from_contract`` is true when
    the message carried the wasm query framing, meaning the text is the
    contract's own error rather than a chain-level failure.
    """
    text = _GRPC_FRAMING.sub("", message.strip(), count=1)
    head, sep, _ = text.partition(_WASM_QUERY_FRAMING)
    if sep:
        return head.strip(), True
    return text.strip(), False


def application_error_from_payload(
    code: int, payload: dict[str, typ.Any]
) -> ApplicationError:
    """Classify a structured gateway error payload.

    A contract that raises ``StdError::NotFound`` answers a smart query with
    ``"<kind> not found"`` inside the wasm query framing. That is the only
    shape mapped to :class:`ApplicationNotFoundError`; chain-level not-found
    errors such as an unknown contract address stay
    :class:`ApplicationOtherError` so they are never read as a missing pair.
    """
    message = payload.get("message")
    text, from_contract = (
        _split_contract_error(message) if isinstance(message, str) else ("", False)
    )
    if from_contract and text.endswith(_NOT_FOUND_SUFFIX):
        return ApplicationNotFoundError(code, payload, contract_error=text)
    return ApplicationOtherError(code, payload, contract_error=text)


def _decode_json(response: httpx.Response) -> object:
    try:
        return msgspec.json.decode(response.content)
    except msgspec.DecodeError as exc:
        raise ResponseShapeError.undecodable(exc) from exc


def _raise_for_error(response: httpx.Response) -> None:
    status = response.status_code
    if status < _HTTP_ERROR_STATUS_THRESHOLD:
        return
    if status in _TRANSPORT_STATUSES:
        raise TransportError.http_error(status)

    try:
        body = _decode_json(response)
    except ResponseShapeError as exc:
        raise TransportError.http_error(status) from exc

    if isinstance(body, dict):
        code = body.get("code")
        if isinstance(code, int) and not isinstance(code, bool):
            raise application_error_from_payload(code, body)
    raise TransportError.http_error(status)


def _encode_query(message: dict[str, typ.Any]) -> str:
    return base64.urlsafe_b64encode(msgspec.json.encode(message)).decode("ascii")


def _parse_height(raw: object) -> int | None:
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return None


def _tx_result_from_payload(payload: object) -> TxResult:
    """Turn a broadcast response into a :class:`TxResult` or raise."""
    if not isinstance(payload, dict):
        raise ResponseShapeError.missing("response")
    tx_response = payload.get("tx_response")
    if not isinstance(tx_response, dict):
        raise ResponseShapeError.missing("tx_response")

    raw_log = tx_response.get("raw_log")
    log_text = raw_log if isinstance(raw_log, str) else ""
    code = tx_response.get("code", 0)
    if not isinstance(code, int):
        raise ResponseShapeError.missing("tx_response.code")
    if code != 0:
        raise ApplicationOtherError(code, tx_response, contract_error=log_text)

    txhash = tx_response.get("txhash")
    if not isinstance(txhash, str):
        raise ResponseShapeError.missing("tx_response.txhash")
    return TxResult(
        txhash=txhash,
        height=_parse_height(tx_response.get("height")),
        raw_log=log_text,
    )


class LcdContractClient:
    """:class:`ContractClient` backed by a Cosmos LCD gateway over httpx."""

    def __init__(
        self,
        config: LcdConfig,
        *,
        signer: TransactionSigner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an HTTP client is created when not supplied."""
        self._config = config
        self._signer = signer
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def query(
        self, contract_address: str, message: dict[str, typ.Any]
    ) -> typ.Any:  # noqa: ANN401 - contract responses are free-form JSON
        """Run a smart query and return the ``data`` member of the response.

        Raises
        ------
        ApplicationError
            If the contract rejected the query.
        TransportError
            If the gateway was unreachable or answered with an unusable body.

        """
        path = _QUERY_PATH.format(
            address=contract_address, query=_encode_query(message)
        )
        response = await self._request("GET", path)
        payload = _decode_json(response)
        if not isinstance(payload, dict) or "data" not in payload:
            raise ResponseShapeError.missing("data")
        return payload["data"]

    async def execute(
        self,
        contract_address: str,
        sender: str,
        message: dict[str, typ.Any],
    ) -> TxResult:
        """Sign and broadcast a ``MsgExecuteContract`` in sync mode.

        A transaction rejected by ``CheckTx`` (nonzero ``code``) raises
        :class:`ApplicationOtherError` carrying the chain's ``raw_log``.
        Anything the signer raises is wrapped in :class:`SigningError`.
        """
        if self._signer is None:
            raise ChainConfigError.missing_signer()

        try:
            tx_bytes = await self._signer.sign_execute(
                sender=sender,
                contract_address=contract_address,
                message=message,
            )
        except ContractCallError:
            raise
        except Exception as exc:  # noqa: BLE001 - signers are deployment code
            raise SigningError.failed(exc) from exc
        response = await self._request(
            "POST",
            _BROADCAST_PATH,
            body={"tx_bytes": tx_bytes, "mode": _BROADCAST_MODE},
        )
        return _tx_result_from_payload(_decode_json(response))

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, typ.Any] | None = None,
    ) -> httpx.Response:
        url = f"{self._config.lcd_url}{path}"
        content = None if body is None else msgspec.json.encode(body)
        headers = None if body is None else {"Content-Type": "application/json"}
        try:
            response = await self._client.request(
                method, url, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            raise TransportError.unreachable(url, exc) from exc
        _raise_for_error(response)
        return response
