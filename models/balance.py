from dataclasses import dataclass


@dataclass
class Balance:
    id: int
    amount: float
    recorded_at: str        # 'YYYY-MM-DDTHH:MM:SS'
    created_at: str = ""
