"""
Fixed workflow every client moves through.

Each step depends on the one before it. Sub-steps are only defined for the
installation step, where dispatch and installation progress is tracked.
"""

from dataclasses import dataclass
from typing import Optional

SUB_STEP_DUE_DAYS = 3


@dataclass(frozen=True)
class SubStepTemplate:
    name: str
    sort_order: int
    description: str = ''
    is_required: bool = True


@dataclass(frozen=True)
class StepTemplate:
    step_number: int
    name: str
    description: str
    estimated_duration: int  # days
    is_optional: bool = False
    sub_steps: tuple = ()

    @property
    def depends_on(self) -> Optional[int]:
        return self.step_number - 1 if self.step_number > 1 else None


STEP_TEMPLATES = (
    StepTemplate(
        step_number=1,
        name='Client Finalization & Loan Process',
        description='Complete client details, KYC documentation, and loan processing',
        estimated_duration=7,
    ),
    StepTemplate(
        step_number=2,
        name='Loan Process',
        description='Handle loan documentation and approval process',
        estimated_duration=5,
    ),
    StepTemplate(
        step_number=3,
        name='Site Survey and Installation',
        description='Conduct site survey and complete installation',
        estimated_duration=10,
        sub_steps=(
            SubStepTemplate('Material Dispatch', 1, 'Material dispatched on site'),
            SubStepTemplate('Structure Assembly', 2, 'Mounting structure assembled'),
            SubStepTemplate('Panel Installation', 3, 'Solar panels installed'),
            SubStepTemplate('Invertor Connection', 4, 'Invertor connected'),
            SubStepTemplate('Net Metering Agreement', 5, 'Dual sign net metering agreement done'),
            SubStepTemplate('Plant Started', 6, 'Plant commissioned and generating'),
        ),
    ),
    StepTemplate(
        step_number=4,
        name='DISCOM Documentation and Net Metering',
        description='Handle DISCOM filing, documentation, and net metering process',
        estimated_duration=15,
    ),
    StepTemplate(
        step_number=5,
        name='Final Bank Process and Subsidy Release',
        description='Complete bank processing and subsidy application',
        estimated_duration=7,
    ),
)

STEP_NUMBERS = tuple(t.step_number for t in STEP_TEMPLATES)
FIRST_STEP = STEP_NUMBERS[0]
LAST_STEP = STEP_NUMBERS[-1]
