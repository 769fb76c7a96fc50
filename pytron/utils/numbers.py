import math

def js_round(value: float) -> int:
    """Half-up rounding (2.5 -> 3, -2.5 -> -2), as browsers round"""
    return int(math.floor(value + 0.5))

def percentage(value: float, target: float) -> float:
    """value/target as a percentage capped at 100, 0 for a zero target"""
    if target == 0:
        return 0.0
    return min(100.0, (value / target) * 100)
