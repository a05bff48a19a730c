"""유틸리티"""
