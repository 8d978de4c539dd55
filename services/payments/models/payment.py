"""Modelos Pydantic para pagos y Stripe Connect"""
from pydantic import BaseModel
from typing import Optional


class PaymentIntentRequest(BaseModel):
    amount: Optional[int] = None  # centavos


class PaymentIntentResult(BaseModel):
    clientSecret: str


class CreateAccountRequest(BaseModel):
    userId: Optional[str] = None


class CreateAccountResult(BaseModel):
    accountId: str
    onboardingUrl: str
    userId: str


class OnboardRequest(BaseModel):
    accountId: Optional[str] = None
    userId: Optional[str] = None


class OnboardResult(BaseModel):
    url: str
    success: bool = True
