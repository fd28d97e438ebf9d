"""
Survey creation flow.

The creator moves through four tabs:

    prompt -> preview -> share -> results

Each tab is reachable only once the data it shows exists: preview needs a
parsed survey, share needs a saved survey, results need the survey to be
live. Events record progress and move to the next tab; ``go_to`` lets the
creator jump to any tab whose guard holds.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from app.schemas.survey import SurveyDraft, SurveyStatus, FlowStep, CreationFlowOut


class Tab(str, Enum):
    PROMPT = "prompt"
    PREVIEW = "preview"
    SHARE = "share"
    RESULTS = "results"


TAB_LABELS = {
    Tab.PROMPT: "1. Create",
    Tab.PREVIEW: "2. Preview",
    Tab.SHARE: "3. Share",
    Tab.RESULTS: "4. Results",
}


class InvalidTransition(Exception):
    """Raised when moving to a tab whose prerequisites are not met."""

    def __init__(self, tab: Tab):
        self.tab = tab
        super().__init__(f"Cannot open the {tab.value} tab yet")


@dataclass
class CreationFlow:
    active_tab: Tab = Tab.PROMPT
    survey: Optional[SurveyDraft] = None
    survey_id: Optional[str] = None
    status: SurveyStatus = SurveyStatus.DRAFT
    completed: set = field(default_factory=set)

    def can_access(self, tab: Tab) -> bool:
        if tab == Tab.PROMPT:
            return True
        if tab == Tab.PREVIEW:
            return self.survey is not None
        if tab == Tab.SHARE:
            return self.survey_id is not None
        return self.status == SurveyStatus.LIVE

    def go_to(self, tab: Tab) -> Tab:
        tab = Tab(tab)
        if not self.can_access(tab):
            raise InvalidTransition(tab)
        self.active_tab = tab
        return tab

    # Events

    def generated(self, survey: SurveyDraft) -> None:
        """A survey was generated or parsed from text."""
        self.survey = survey
        self.completed.add(Tab.PROMPT)
        self.active_tab = Tab.PREVIEW

    def generation_failed(self) -> None:
        self.active_tab = Tab.PROMPT

    def saved(self, survey_id: str) -> None:
        if self.survey is None:
            raise InvalidTransition(Tab.SHARE)
        self.survey_id = survey_id
        self.status = SurveyStatus.DRAFT
        self.completed.add(Tab.PREVIEW)
        self.active_tab = Tab.SHARE

    def went_live(self) -> None:
        if self.survey_id is None:
            raise InvalidTransition(Tab.RESULTS)
        self.status = SurveyStatus.LIVE
        self.completed.update({Tab.SHARE, Tab.RESULTS})

    def loaded(self, survey_id: str, survey: SurveyDraft, status: SurveyStatus) -> None:
        """A stored survey was opened for editing or review."""
        self.survey = survey
        self.survey_id = survey_id
        self.status = SurveyStatus(status)
        self.completed = {Tab.PROMPT, Tab.PREVIEW, Tab.SHARE}
        if self.status == SurveyStatus.LIVE:
            self.completed.add(Tab.RESULTS)
            self.active_tab = Tab.RESULTS
        else:
            self.active_tab = Tab.SHARE

    def reset(self) -> None:
        self.active_tab = Tab.PROMPT
        self.survey = None
        self.survey_id = None
        self.status = SurveyStatus.DRAFT
        self.completed = set()

    def steps(self) -> list[FlowStep]:
        return [
            FlowStep(
                id=tab.value,
                label=TAB_LABELS[tab],
                can_access=self.can_access(tab),
                completed=tab in self.completed,
            )
            for tab in Tab
        ]

    def to_schema(self) -> CreationFlowOut:
        return CreationFlowOut(active_tab=self.active_tab.value, status=self.status, steps=self.steps())
