import json

from rest_framework.renderers import BaseRenderer


class EventStreamRenderer(BaseRenderer):
    """Lets ``Accept: text/event-stream`` pass content negotiation.

    Streaming views build their own ``StreamingHttpResponse``; this only
    renders the error bodies DRF produces before the stream starts.
    """

    media_type = "text/event-stream"
    format = "sse"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        return f"event: error\ndata: {json.dumps(data, default=str)}\n\n".encode(
            self.charset
        )
