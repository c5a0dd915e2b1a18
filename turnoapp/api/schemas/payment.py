from pydantic import BaseModel


class DepositCallbackRequest(BaseModel):
    checkout_token: str
    succeeded: bool


class DepositCallbackAck(BaseModel):
    status: str  # "abandoned" when the payment did not go through
