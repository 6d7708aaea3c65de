# services/barcode_scanning_service.py
import io
from PIL import Image, UnidentifiedImageError
from fastapi import HTTPException
from models.dtos import BarcodeScanResult


def _decode(img):
    # pyzbar는 import 시점에 libzbar를 로드하므로 실제 스캔할 때만 불러옴
    from pyzbar.pyzbar import decode
    return decode(img)


class BarcodeScanningService:
    def scan_image_to_barcode(self, image_bytes: bytes) -> BarcodeScanResult:
        """
        업로드된 이미지 바이트에서 바코드를 찾아
        바코드 번호와 타입을 담은 DTO를 반환합니다.

        바코드가 없으면 404, 이미지를 열 수 없으면 500.
        """
        try:
            img = Image.open(io.BytesIO(image_bytes))
            barcodes = _decode(img)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            # 손상된 파일, 이미지가 아닌 파일 등
            raise HTTPException(status_code=500, detail=f"Failed to process image: {e}")

        if not barcodes:
            raise HTTPException(status_code=404, detail="No barcode found in image.")

        # 첫 번째 결과 사용
        first_barcode = barcodes[0]
        return BarcodeScanResult(
            barcode=first_barcode.data.decode("utf-8"),
            type=first_barcode.type,
        )
