# authflow/app/mail/templates.py
import html

VERIFICATION_EMAIL_SUBJECT = "Verify your email"
VERIFICATION_EMAIL_CATEGORY = "Email Verification"

VERIFICATION_EMAIL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Verify Your Email</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #2d6cdf;">Verify Your Email</h1>
  <p>Hello,</p>
  <p>Thank you for signing up! Your verification code is:</p>
  <p style="font-size: 32px; font-weight: bold; letter-spacing: 5px; text-align: center;">{verification_code}</p>
  <p>Enter this code on the verification page to complete your registration.</p>
  <p>This code will expire in 24 hours for security reasons.</p>
  <p>If you didn't create an account with us, please ignore this email.</p>
</body>
</html>
"""

WELCOME_EMAIL_SUBJECT = "Welcome!"
WELCOME_EMAIL_CATEGORY = "Welcome"

# Used when no Mailtrap template UUID is configured
WELCOME_EMAIL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #2d6cdf;">Welcome, {full_name}!</h1>
  <p>Your email address is verified. Set up two-factor authentication to finish securing your account.</p>
</body>
</html>
"""


def render_verification_email(code: str) -> str:
    return VERIFICATION_EMAIL_TEMPLATE.format(verification_code=code)


def render_welcome_email(full_name: str) -> str:
    return WELCOME_EMAIL_TEMPLATE.format(full_name=html.escape(full_name))
