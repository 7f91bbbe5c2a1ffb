from pydantic import BaseModel


class SectionPlanningResponse(BaseModel):
    id: int
    name: str
    planning_closed: bool

    class Config:
        from_attributes = True


class PlanningClosedResponse(BaseModel):
    section_id: int
    planning_closed: bool


class PlanningStatusStats(BaseModel):
    """How many sections have finished planning for the current semester."""

    total_sections: int
    closed: int
    open: int
