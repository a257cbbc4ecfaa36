# User-facing strings surfaced by the controller.
# Backend-provided messages take precedence; these are the fallbacks.

TERMS_REQUIRED = "Please accept the terms and conditions to continue."

EMIRATES_ID_INVALID = "Enter a valid Emirates ID (784-YYYY-NNNNNNN-C)"
FULL_NAME_INVALID = "Enter your full name (at least 2 characters)"
FULL_NAME_TOO_LONG = "Name must be at most 200 characters"
PHONE_INVALID = "Enter a valid UAE phone number (+971XXXXXXXXX)"
EMAIL_INVALID = "Enter a valid email address"
GENDER_REQUIRED = "Please select your gender"

OTP_INCOMPLETE = "Please enter all 6 digits"
OTP_INVALID = "Invalid OTP. Please try again."
OTP_VERIFY_FAILED = "Verification failed. Please try again."
OTP_RESEND_FAILED = "Failed to resend OTP."
OTP_RESEND_COOLDOWN = "Please wait before requesting a new code."

PIN_SHAPE_INVALID = "PIN must be exactly 6 digits"
PIN_ALL_SAME = "PIN cannot be all the same digit"
PIN_MISMATCH = "PINs do not match. Please try again."
PIN_CREATE_FAILED = "Failed to create PIN. Please try again."
PIN_OTP_REQUIRED = "Please verify your phone number before creating a PIN."

REGISTRATION_FAILED = "Registration failed. Please try again."
STATUS_FAILED = "Could not check registration status. Please try again."
TRANSPORT_FAILED = "We could not reach the service. Please check your connection and try again."

SESSION_LOST_IDENTITY = "Your session has expired. Please re-enter your Emirates ID."
SESSION_LOST_RESTART = "Your session has expired. Please start again."
ACCOUNT_BLOCKED = "This account cannot continue registration. Please contact support."

WRONG_STEP = "This action is not available at the current step."
BUSY = "Please wait, your previous request is still in progress."
