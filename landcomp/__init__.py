"""LandComp 에이전트 오케스트레이션 코어"""

__version__ = "0.1.0"
