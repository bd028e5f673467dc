# Awaiting-state constants (the flow discriminant persisted with each session)

# Interaction Surface: No operation in progress
# Accepted free text: none ("not understood")
IDLE = "idle"


# Auth flow

# Interaction Surface: Login started, waiting for the account email
# Transient data: none
AWAITING_EMAIL = "awaiting-email"

# Interaction Surface: Code requested, waiting for the one-time code
# Transient data: email + otpSessionId (stored on the session itself)
AWAITING_OTP = "awaiting-otp"


# Money-movement flows

# Interaction Surface: Stepwise deposit, waiting for the USDC amount
AWAITING_DEPOSIT_AMOUNT = "awaiting-deposit-amount"

# Interaction Surface: Stepwise deposit, waiting for a chain menu choice
# Transient data: pendingDepositAmount
AWAITING_DEPOSIT_CHAIN = "awaiting-deposit-chain"

# Interaction Surface: Inline send, waiting for the recipient email
AWAITING_SEND_EMAIL = "awaiting-send-email"

# Interaction Surface: Inline send, waiting for the amount
# Transient data: pendingRecipientEmail
AWAITING_SEND_AMOUNT = "awaiting-send-amount"

# Interaction Surface: Inline withdrawal, waiting for the wallet address
AWAITING_WITHDRAW_ADDRESS = "awaiting-withdraw-address"

# Interaction Surface: Inline withdrawal, waiting for the amount
# Transient data: pendingWithdrawAddress
AWAITING_WITHDRAW_AMOUNT = "awaiting-withdraw-amount"

# Interaction Surface: Inline bank offramp, waiting for the invoice number
AWAITING_OFFRAMP_INVOICE = "awaiting-offramp-invoice"


AUTH_STATES = (AWAITING_EMAIL, AWAITING_OTP)
MONEY_STATES = (
    AWAITING_DEPOSIT_AMOUNT,
    AWAITING_DEPOSIT_CHAIN,
    AWAITING_SEND_EMAIL,
    AWAITING_SEND_AMOUNT,
    AWAITING_WITHDRAW_ADDRESS,
    AWAITING_WITHDRAW_AMOUNT,
    AWAITING_OFFRAMP_INVOICE,
)
ALL_STATES = (IDLE,) + AUTH_STATES + MONEY_STATES
