"""HTML bodies for transactional emails."""

from html import escape

_SHELL = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">
<h2 style="color: #0288d1;">CAprep - {title}</h2>
<p>{intro}</p>
<div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; text-align: center; margin: 20px 0;">
<h1 style="color: #03a9f4; letter-spacing: 5px; margin: 0;">{code}</h1>
</div>
<p>{outro}</p>
<p>Thank you for using CA Prep Platform!</p>
<p style="margin-top: 30px; font-size: 12px; color: #777;">This is an automated message, please do not reply.</p>
</div>
"""


def registration_otp(email: str, code: str, minutes: int) -> tuple[str, str, str]:
    """Returns (subject, html, text)."""
    html = _SHELL.format(
        title="Email Verification",
        intro=f"Hello {escape(email)}, please use the following OTP to verify your email address:",
        code=escape(code),
        outro=(
            f"This OTP will expire in {minutes} minutes. "
            "If you did not request this, please ignore this email."
        ),
    )
    text = f"Your OTP is {code}. Valid for {minutes} minutes."
    return "Your OTP for CAprep Registration", html, text


def password_reset_otp(email: str, code: str, minutes: int) -> tuple[str, str, str]:
    """Returns (subject, html, text)."""
    html = _SHELL.format(
        title="Password Reset",
        intro=(
            f"Hello {escape(email)}, we received a request to reset your password. "
            "Please use the following OTP to reset your password:"
        ),
        code=escape(code),
        outro=(
            f"This OTP will expire in {minutes} minutes. If you did not request this "
            "password reset, please ignore this email or contact support."
        ),
    )
    text = f"Your password reset OTP is {code}. Valid for {minutes} minutes."
    return "Password Reset OTP for CAprep", html, text
