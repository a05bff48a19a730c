"""이미지 처리 유틸리티"""

import io

from PIL import Image


def load_image_from_bytes(data: bytes) -> Image.Image:
    """바이트 데이터에서 이미지 로드"""
    return Image.open(io.BytesIO(data))


def image_to_bytes(image: Image.Image, format: str = "PNG") -> bytes:
    """이미지를 바이트로 변환"""
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    return buffer.getvalue()


def image_dimensions(data: bytes) -> tuple[int, int] | None:
    """이미지 바이트의 (width, height), 디코딩 실패 시 None"""
    try:
        with load_image_from_bytes(data) as image:
            return image.width, image.height
    except (OSError, ValueError):
        return None


def placeholder_png(size: int = 64, color: str = "white") -> bytes:
    """단색 PNG 생성 (더미 이미지 생성 결과용)"""
    return image_to_bytes(Image.new("RGB", (size, size), color=color))
