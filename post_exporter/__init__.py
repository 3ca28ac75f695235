"""Post exporter.

퍼블리케이션의 포스트를 EPUB / 텍스트 파일로 내보내는 엔진입니다.
"""

__version__ = "0.1.0"
