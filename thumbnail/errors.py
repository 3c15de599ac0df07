# thumbnail/errors.py


class RenderError(Exception):
    """Base error for a failed render; carries the HTTP status to report."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class InvalidTargetError(RenderError):
    status_code = 400


class FontLoadError(RenderError):
    status_code = 500


class BrowserLaunchError(RenderError):
    status_code = 500


class NavigationError(RenderError):
    status_code = 502


class NavigationTimeoutError(NavigationError):
    status_code = 504


class ScreenshotError(RenderError):
    status_code = 500
