"""De-duplication of image updates seen by one viewer."""


class ImageUrlTracker:
    """Holds the image URL currently shown to a viewer.

    Events arrive at-least-once, so the same URL may be seen several times;
    only a new, non-null URL counts as an update.
    """

    def __init__(self, current: str | None = None):
        self._current = current

    @property
    def current(self) -> str | None:
        return self._current

    def apply(self, image_url: str | None) -> bool:
        """Adopt ``image_url`` if it is an actual change.

        Returns:
            True when the viewer should be notified
        """
        if not image_url or image_url == self._current:
            return False
        self._current = image_url
        return True
