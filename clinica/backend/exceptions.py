class ClinicError(Exception):
    """Base class for errors raised by the clinic backend."""


class DataUnavailable(ClinicError):
    """An upstream read (database) failed; callers should degrade, not crash."""


class ViewerNotAuthorized(ClinicError):
    def __init__(self, msg: str = "viewer not authorized for role-scoped view"):
        super().__init__(msg)
        self.msg = msg
