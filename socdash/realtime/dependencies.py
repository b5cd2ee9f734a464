from fastapi import Request

from socdash.realtime.broadcaster import Broadcaster


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster
