class PortalError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(Exception):
    """ 세션 없음. 오류로 표시하지 않고 로그인 페이지로 보냄 """

    def __init__(self, redirected_from: str | None = None):
        super().__init__("Not authenticated")
        self.redirected_from = redirected_from


class ProfileSaveError(PortalError):
    pass


class AvatarUploadError(PortalError):
    pass


class EnrollmentError(PortalError):
    pass


class ResultUpdateError(PortalError):
    pass


class IdentityError(PortalError):
    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class CardRenderError(PortalError):
    pass
