from typing import Optional

from judge.admission import AdmissionLimiter
from judge.sandbox import SandboxedExecutor

# Global runtime state initialized in lifespan.setup_resources
executor: Optional[SandboxedExecutor] = None
admission: Optional[AdmissionLimiter] = None
