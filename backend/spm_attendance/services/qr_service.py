"""QR Code generation and parsing service."""
import base64
import io
import json
from typing import Any, Dict, Optional, Tuple

import qrcode
from qrcode.constants import ERROR_CORRECT_M

PAYLOAD_FIELDS = ['sessionCode', 'courseCode', 'courseName', 'lecturer', 'issuedAt', 'expiresAt']

class QRService:
    """Service for QR code operations."""

    @staticmethod
    def encode_payload(payload: Dict[str, Any]) -> str:
        """Serialize the session payload to the JSON text embedded in the QR image."""
        return json.dumps(payload, separators=(',', ':'))

    @staticmethod
    def generate_data_url(payload: Dict[str, Any]) -> str:
        """
        Render the session payload as a QR code.
        Returns: PNG image as a ``data:`` URL
        """
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(QRService.encode_payload(payload))
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

    @staticmethod
    def decode_payload(qr_text: str) -> Tuple[bool, Optional[Dict], Optional[str]]:
        """
        Parse scanned QR text back into the session payload.
        Returns: (is_valid, data, error_message)
        """
        try:
            data = json.loads(qr_text)
        except (TypeError, json.JSONDecodeError):
            return False, None, "Invalid QR code format"

        if not isinstance(data, dict):
            return False, None, "Invalid QR code format"

        for field in PAYLOAD_FIELDS:
            if field not in data:
                return False, None, f"Missing field: {field}"

        return True, data, None

    @staticmethod
    def extract_session_code(qr_text: Optional[str]) -> Optional[str]:
        """Session code from scanned text: the JSON payload, a quoted string, or a bare code."""
        text = (qr_text or '').strip()
        if not text:
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return text

        if isinstance(data, dict):
            code = data.get('sessionCode') or data.get('qrCode')
            return str(code).strip() if code else None
        if isinstance(data, str):
            return data.strip() or None
        return text
