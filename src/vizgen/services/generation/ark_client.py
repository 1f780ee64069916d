"""Volcano Engine Ark client for image and video generation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import structlog

from vizgen.services.exceptions import ProviderPermanentError, ProviderTransientError
from vizgen.services.generation.sizes import to_provider_size

logger = structlog.get_logger(__name__)

DEFAULT_VIDEO_DURATION = 5
DEFAULT_VIDEO_FPS = 24
MAX_ERROR_BODY_CHARS = 500


class TaskState(str, Enum):
    """Provider task state, collapsed to what the polling loop needs."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Ark task states -> TaskState
_TASK_STATES = {
    "queued": TaskState.RUNNING,
    "running": TaskState.RUNNING,
    "succeeded": TaskState.SUCCEEDED,
    "failed": TaskState.FAILED,
    "cancelled": TaskState.FAILED,
}


@dataclass
class TaskStatus:
    """Snapshot of an asynchronous generation task."""

    state: TaskState
    video_url: str | list[str] | None = None  # May hold several delimited URLs
    thumbnail_url: str | list[str] | None = None
    error: str | None = None


def _error_message(response: httpx.Response) -> str:
    """Extract Ark's error message, falling back to the start of the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:MAX_ERROR_BODY_CHARS]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"{error.get('code', 'error')}: {error['message']}"
    return response.text[:MAX_ERROR_BODY_CHARS]


def _check_response(response: httpx.Response) -> dict[str, Any]:
    """Classify HTTP failures and return the decoded JSON body.

    Raises:
        ProviderTransientError: Rate limit (429), server errors (5xx)
        ProviderPermanentError: Auth failures (401/403), bad request (400),
            other non-2xx statuses, non-JSON bodies
    """
    status = response.status_code
    if status == 429:
        raise ProviderTransientError(f"Rate limit exceeded: {_error_message(response)}")
    elif status >= 500:
        raise ProviderTransientError(
            f"Service unavailable ({status}): {_error_message(response)}"
        )
    elif status in (401, 403):
        raise ProviderPermanentError(
            f"Authentication failed ({status}): {_error_message(response)}. "
            "Check ARK_API_KEY configuration in .env file."
        )
    elif status == 400:
        raise ProviderPermanentError(f"Bad request: {_error_message(response)}")
    elif status >= 300:
        raise ProviderPermanentError(f"Unexpected status {status}: {_error_message(response)}")

    try:
        body = response.json()
    except ValueError as e:
        raise ProviderPermanentError(f"Provider returned non-JSON body: {response.text[:200]}") from e
    if not isinstance(body, dict):
        raise ProviderPermanentError(f"Unexpected response format from provider: {type(body)}")
    return body


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ArkClient:
    """Generation client for the Ark API.

    Images are generated synchronously; videos are created as tasks that
    must be polled with ``query_task``.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://ark.cn-beijing.volces.com/api/v3",
        image_model: str = "doubao-seedream-3-0-t2i-250415",
        video_model: str = "doubao-seedance-1-0-pro-250528",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Ark client.

        Args:
            api_key: Ark API key (from ARK_API_KEY env var)
            base_url: API root including version prefix
            image_model: Default image model endpoint id
            video_model: Default video model endpoint id
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.image_model = image_model
        self.video_model = video_model
        self.timeout = timeout
        self._transport = transport
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if not self.api_key:
            raise ProviderPermanentError("ARK_API_KEY not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderTransientError(f"Request timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderTransientError(f"Network error: {e}") from e

        return _check_response(response)

    async def generate_image(
        self,
        prompt: str,
        size: str | None = None,
        style: str | None = None,
        quality: str | None = None,
        response_format: str | None = None,
        seed: int | None = None,
        guidance_scale: float | None = None,
        watermark: bool | None = None,
        reference_image: str | None = None,
    ) -> str:
        """Generate one image.

        Args:
            prompt: Final prompt text
            size: Size preset or WIDTHxHEIGHT (default 1024x1024)
            style: Free-text style appended as ", {style} style"
            quality: Optional quality hint
            response_format: "url" (default) or "b64_json"
            seed: Random seed, -1 for provider-chosen
            guidance_scale: Prompt adherence, 1-10
            watermark: Whether the provider adds its watermark
            reference_image: Optional reference image URL

        Returns:
            Image URL (a data: URL when b64_json was requested)

        Raises:
            ProviderError: Request failed or response carried no image
        """
        if style and style.strip():
            prompt = f"{prompt}, {style.strip()} style"

        payload: dict[str, Any] = {
            "model": self.image_model,
            "prompt": prompt,
            "size": to_provider_size(size),
            "response_format": response_format or "url",
        }
        optional = {
            "quality": quality,
            "seed": seed,
            "guidance_scale": guidance_scale,
            "watermark": watermark,
            "image": reference_image,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})

        logger.info("ark.image.request", model=self.image_model, size=payload["size"])
        body = await self._request("POST", "/images/generations", json=payload)

        data = body.get("data")
        if not isinstance(data, list) or not data:
            reason = _describe_error(body) or "response data is empty"
            raise ProviderPermanentError(f"Image generation failed: {reason}")

        first = data[0] or {}
        if first.get("url"):
            return first["url"]
        if first.get("b64_json"):
            return f"data:image/jpeg;base64,{first['b64_json']}"
        raise ProviderPermanentError("Image generation failed: response contains no image")

    async def generate_video(
        self,
        prompt: str,
        model: str | None = None,
        resolution: str | None = None,
        duration: int | None = None,
        ratio: str | None = None,
        fps: int | None = None,
        camera_fixed: bool | None = None,
        cfg_scale: float | None = None,
        count: int | None = None,
        first_frame_image: str | None = None,
        last_frame_image: str | None = None,
        hd: bool | None = None,
        watermark: bool | None = None,
    ) -> str:
        """Create a video generation task.

        Generation parameters are passed as ``--flag value`` suffixes on the
        text prompt; first/last frame images are sent as image content items.

        Returns:
            Provider task id to poll with ``query_task``

        Raises:
            ProviderError: Request failed or response carried no task id
        """
        if hd and not resolution:
            resolution = "1080p"

        text = [prompt]
        if resolution:
            text.append(f"--rs {resolution}")
        text.append(f"--dur {duration or DEFAULT_VIDEO_DURATION}")
        if ratio:
            text.append(f"--rt {ratio}")
        text.append(f"--fps {fps or DEFAULT_VIDEO_FPS}")
        if camera_fixed is not None:
            text.append(f"--cf {_flag(camera_fixed)}")
        if watermark is not None:
            text.append(f"--wm {_flag(watermark)}")

        content: list[dict[str, Any]] = [{"type": "text", "text": " ".join(text)}]
        if first_frame_image:
            content.append(
                {"type": "image_url", "image_url": {"url": first_frame_image}, "role": "first_frame"}
            )
        if last_frame_image:
            content.append(
                {"type": "image_url", "image_url": {"url": last_frame_image}, "role": "last_frame"}
            )

        payload: dict[str, Any] = {"model": model or self.video_model, "content": content}
        if cfg_scale is not None:
            payload["cfg_scale"] = cfg_scale
        if count and count > 1:
            payload["n"] = count

        logger.info("ark.video.request", model=payload["model"], frames=len(content) - 1)
        body = await self._request("POST", "/contents/generations/tasks", json=payload)

        task_id = body.get("id")
        if not task_id:
            reason = _describe_error(body) or "response has no task id"
            raise ProviderPermanentError(f"Video task creation failed: {reason}")
        return str(task_id)

    async def query_task(self, task_id: str) -> TaskStatus:
        """Fetch the current state of a video generation task.

        Raises:
            ProviderError: Request failed or the state is unrecognized
        """
        body = await self._request("GET", f"/contents/generations/tasks/{task_id}")

        raw_state = str(body.get("status", "")).lower()
        state = _TASK_STATES.get(raw_state)
        if state is None:
            raise ProviderPermanentError(f"Unknown task status '{raw_state}' for task {task_id}")

        if state == TaskState.FAILED:
            return TaskStatus(state=state, error=_describe_error(body) or f"task {raw_state}")

        if state == TaskState.RUNNING:
            return TaskStatus(state=state)

        content = body.get("content") or {}
        return TaskStatus(
            state=state,
            video_url=content.get("video_url"),
            thumbnail_url=content.get("cover_url") or content.get("last_frame_url"),
        )


def _describe_error(body: dict[str, Any]) -> str:
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("code") or ""
    if isinstance(error, str):
        return error
    return ""

