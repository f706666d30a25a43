from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.profile import Gender, ProfileRecord, ensure_past_date

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LoginIn(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)


class RegisterIn(BaseModel):
    full_name: str = Field(..., min_length=2)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    confirm_password: str
    height_cm: float = Field(..., ge=50, le=200)
    birth_date: date
    gender: Gender
    activity_level: int = Field(1, ge=1, le=6)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, v: date | None) -> date | None:
        return ensure_past_date(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordIn(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)


class ResetPasswordIn(BaseModel):
    password: str = Field(..., min_length=6)
    confirm_password: str
    # tokens from the recovery link, when the session is not active yet
    access_token: str | None = None
    refresh_token: str | None = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class AccountUpdate(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str | None = None
    confirm_password: str | None = None

    @model_validator(mode="after")
    def check_password(self):
        # an empty password means "keep the current one"
        if not self.password:
            self.password = None
            return self
        if len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters")
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class SessionOut(BaseModel):
    is_authenticated: bool
    loading: bool
    user_id: str | None
    email: str | None
    profile: ProfileRecord | None
