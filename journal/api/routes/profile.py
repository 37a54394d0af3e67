"""
Psych profile and preference endpoints.
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from journal.api.deps import get_profile_store, get_trade_store
from journal.core.profile import ProfileStore
from journal.core.store import TradeStore

router = APIRouter()

TriLevel = Literal['low', 'medium', 'high']
Scale = Optional[int]

class LifeSection(BaseModel):
    age_range: Optional[Literal['18-24', '25-34', '35-44', '45-54', '55-64', '65+']] = None
    time_zone: Optional[str] = None
    work_schedule: Optional[str] = None
    sleep_pattern: Optional[str] = None
    social_support: Optional[str] = None

class FinancialSection(BaseModel):
    income_stability: Optional[Literal['stable', 'variable']] = None
    runway_months: Optional[float] = Field(None, ge=0)
    debt_comfort: Optional[TriLevel] = None
    loss_tolerance: Optional[TriLevel] = None
    bank_segmentation: Optional[str] = None

class WellbeingSection(BaseModel):
    mood: Scale = Field(None, ge=1, le=10)
    anxiety: Scale = Field(None, ge=1, le=10)
    current_stressors: Optional[str] = None
    triggers: Optional[str] = None
    coping_strategies: Optional[str] = None
    crisis_plan_accepted: Optional[bool] = None

class PersonalitySection(BaseModel):
    risk_preference: Optional[TriLevel] = None
    impulsivity: Scale = Field(None, ge=1, le=10)
    need_for_control: Scale = Field(None, ge=1, le=10)
    conscientiousness: Scale = Field(None, ge=1, le=10)
    emotional_reactivity: Scale = Field(None, ge=1, le=10)
    resilience: Scale = Field(None, ge=1, le=10)
    personal_values: Optional[str] = None

class TradingSection(BaseModel):
    preferred_times: Optional[str] = None
    alpha_sources: Optional[str] = None
    common_patterns: Optional[str] = None
    holding_horizon: Optional[str] = None
    checklist_maturity: Scale = Field(None, ge=1, le=10)

class ConsentSection(BaseModel):
    accepted: bool = False

class ProfilePayload(BaseModel):
    life: Optional[LifeSection] = None
    financial: Optional[FinancialSection] = None
    wellbeing: Optional[WellbeingSection] = None
    personality: Optional[PersonalitySection] = None
    trading: Optional[TradingSection] = None
    consent: Optional[ConsentSection] = None

    def sections(self) -> dict:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

class CurrencyPreference(BaseModel):
    currency: Literal['USD', 'SOL']

@router.get("/profile")
def get_profile(profiles: ProfileStore = Depends(get_profile_store)):
    """
    Current psych profile.
    """
    return profiles.profile

@router.put("/profile")
def set_profile(body: ProfilePayload, profiles: ProfileStore = Depends(get_profile_store)):
    """
    Replace the whole profile.
    """
    return profiles.set_profile(body.sections())

@router.patch("/profile")
def update_profile(body: ProfilePayload, profiles: ProfileStore = Depends(get_profile_store)):
    """
    Merge the supplied sections into the profile.
    """
    return profiles.update(body.sections())

@router.delete("/profile")
def reset_profile(profiles: ProfileStore = Depends(get_profile_store)):
    """
    Reset the profile to its empty initial state.
    """
    return profiles.reset()

@router.get("/settings/currency", response_model=CurrencyPreference)
def get_currency(store: TradeStore = Depends(get_trade_store)):
    """
    Display currency preference.
    """
    return CurrencyPreference(currency=store.currency_preference)

@router.put("/settings/currency", response_model=CurrencyPreference)
def set_currency(body: CurrencyPreference, store: TradeStore = Depends(get_trade_store)):
    """
    Change the display currency preference.
    """
    return CurrencyPreference(currency=store.set_currency_preference(body.currency))
