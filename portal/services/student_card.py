"""Student identity card: two faces, print document and two-page PDF export.

Export rasterizes the front and the back face independently with Pillow and
places each raster, scaled to fit and centered, on its own US Letter landscape
page. The print document is only marked printable once every image it embeds
has settled (loaded or failed).
"""
import base64
import io
import logging
import textwrap
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from typing import Callable, Iterable, NamedTuple, Optional, Union
from urllib.parse import quote, urlencode

import requests
from jinja2 import TemplateNotFound
from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from portal.core.config import settings
from portal.core.exceptions import CardRenderError
from portal.schemas.student import StudentRow
from portal.services.student import resolve_avatar_url

logger = logging.getLogger(__name__)

INSTITUTE_NAME = "Quick Tech Institute of I.T MPM"
CONTACT_PHONE = "+92 21 1234 5678"
CONTACT_EMAIL = "education@quicktech.com"
CONTACT_URL = "www.quicktech.com/"
CARD_FILENAME = "student-Card by QuickTech.pdf"

# 화면 기준 카드 한 면 크기(px)와 래스터 배율
FACE_WIDTH, FACE_HEIGHT = 350, 560
CARD_SCALE = 2

# US Letter 가로 (pt)
PAGE_WIDTH, PAGE_HEIGHT = 792, 612
PDF_RESOLUTION = 144
PX_PER_PT = PDF_RESOLUTION / 72

QR_SIZE = 120
IMAGE_TIMEOUT = 10

ImageFetcher = Callable[[str], bytes]

BLUE = "#2563eb"
DARK_BLUE = "#1d4ed8"
SLATE = "#334155"
MUTED = "#64748b"
LINE = "#cbd5e1"


@dataclass
class StudentCard:
    full_name: str
    student_id: str
    roll_no: str
    email: str
    avatar_url: str
    admit_date: str = ""

    @property
    def qr_payload(self) -> str:
        return qr_payload(self.full_name, self.student_id, self.roll_no, self.email)

    @property
    def qr_url(self) -> str:
        return qr_image_url(self.full_name, self.student_id, self.roll_no, self.email)


class PageFit(NamedTuple):
    x: float
    y: float
    width: float
    height: float


def format_admit_date(value: Union[date, str, None]) -> str:
    """ 'Saturday, November 1, 2025' 형식. 값이 없거나 해석할 수 없으면 빈 문자열 """
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return ""
    if isinstance(value, datetime):
        value = value.date()
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


@lru_cache(maxsize=256)
def qr_payload(full_name: str, student_id: str, roll_no: str, email: str) -> str:
    return f"Name: {full_name}\nID: {student_id}\nRoll No: {roll_no}\nEmail: {email}"


@lru_cache(maxsize=256)
def qr_image_url(full_name: str, student_id: str, roll_no: str, email: str) -> str:
    # 학생 정보가 바뀔 때만 새 URL이 만들어짐
    query = urlencode(
        {
            "data": qr_payload(full_name, student_id, roll_no, email),
            "size": f"{QR_SIZE}x{QR_SIZE}",
            "color": "1e293b",
            "bgcolor": "ffffff",
        },
        quote_via=quote,
    )
    return f"{settings.QR_SERVICE_URL}?{query}"


def build_student_card(student: StudentRow) -> StudentCard:
    return StudentCard(
        full_name=student.full_name or "",
        student_id=student.student_id or "",
        roll_no=student.roll_no or "",
        email=student.email or "",
        avatar_url=resolve_avatar_url(student.avatar),
        admit_date=format_admit_date(student.admit_date),
    )


def front_side_text(card: StudentCard) -> str:
    return f"Name: {card.full_name}\nRoll No: {card.roll_no}\nAdmit Date: {card.admit_date or 'Not Set'}"


def back_side_text(card: StudentCard) -> str:
    return f"Student ID: {card.roll_no}\nEmail: {card.email}"


def fetch_image(url: str) -> bytes:
    try:
        response = requests.get(url, timeout=IMAGE_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise CardRenderError(f"Could not load card image {url}: {e}")
    return response.content


def _open_image(data: bytes, what: str) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise CardRenderError(f"Could not decode {what}: {e}")
    return image.convert("RGB")


# --- rasterization ---------------------------------------------------------

def _font(size: int):
    return ImageFont.load_default(size=size * CARD_SCALE)


def _centered_text(draw: ImageDraw.ImageDraw, y: int, text: str, font, fill: str, width: int) -> int:
    text_width = draw.textlength(text, font=font)
    draw.text(((width - text_width) / 2, y), text, font=font, fill=fill)
    return y + int(font.size * 1.4) if hasattr(font, "size") else y + 14 * CARD_SCALE


def _draw_logo(draw: ImageDraw.ImageDraw, center_x: int, top: int) -> int:
    s = CARD_SCALE
    size = 64 * s
    left = center_x - size // 2
    draw.rounded_rectangle([left, top, left + size, top + size], radius=14 * s, fill=BLUE)
    font = _font(26)
    text_width = draw.textlength("QT", font=font)
    draw.text((center_x - text_width / 2, top + 16 * s), "QT", font=font, fill="white")
    return top + size


def _card_canvas() -> tuple[Image.Image, ImageDraw.ImageDraw]:
    s = CARD_SCALE
    image = Image.new("RGB", (FACE_WIDTH * s, FACE_HEIGHT * s), "white")
    draw = ImageDraw.Draw(image)
    draw.rounded_rectangle(
        [0, 0, image.width - 1, image.height - 1], radius=24 * s, outline=BLUE, width=4 * s
    )
    return image, draw


def render_front(card: StudentCard, photo: Image.Image) -> Image.Image:
    s = CARD_SCALE
    image, draw = _card_canvas()
    width = image.width

    y = _draw_logo(draw, width // 2, 24 * s) + 16 * s
    y = _centered_text(draw, y, "STUDENT ID CARD", _font(20), DARK_BLUE, width) + 8 * s

    photo_box = (160 * s, 192 * s)
    fitted = ImageOps.fit(photo, photo_box)
    left = (width - photo_box[0]) // 2
    image.paste(fitted, (left, y))
    draw.rectangle([left, y, left + photo_box[0], y + photo_box[1]], outline=LINE, width=2 * s)
    y += photo_box[1] + 16 * s

    y = _centered_text(draw, y, card.full_name, _font(18), DARK_BLUE, width)
    # 입학일이 없으면 줄 자체를 생략
    if card.admit_date:
        _centered_text(draw, y, f"Admit Date: {card.admit_date}", _font(12), MUTED, width)
    return image


def render_back(card: StudentCard, qr: Image.Image) -> Image.Image:
    s = CARD_SCALE
    image, draw = _card_canvas()
    width = image.width
    margin = 24 * s
    label_font, value_font = _font(13), _font(13)

    y = 32 * s
    for label, value in (("Student ID:", card.roll_no), ("Registration#", card.student_id)):
        draw.text((margin, y), label, font=label_font, fill=SLATE)
        value_width = draw.textlength(value, font=value_font)
        draw.text((width - margin - value_width, y), value, font=value_font, fill="#475569")
        y += 24 * s

    y += 24 * s
    draw.line([(width // 2 - 100 * s, y), (width // 2 + 100 * s, y)], fill=LINE, width=2 * s)
    y = _centered_text(draw, y + 6 * s, "Authorized Signature", _font(14), BLUE, width) + 8 * s

    y = _centered_text(draw, y, "Note:", _font(12), SLATE, width)
    for line in textwrap.wrap("Finder of this card may please post it to", 44):
        y = _centered_text(draw, y, line, _font(12), MUTED, width)
    y = _centered_text(draw, y, INSTITUTE_NAME, _font(12), SLATE, width) + 8 * s

    qr_box = QR_SIZE * s
    qr_left = (width - qr_box) // 2
    image.paste(qr.resize((qr_box, qr_box)), (qr_left, y))
    draw.rectangle([qr_left, y, qr_left + qr_box, y + qr_box], outline=LINE, width=1 * s)
    y = _centered_text(draw, y + qr_box + 4 * s, "Scan for student information", _font(10), MUTED, width) + 8 * s

    for label, value in (("Contact:", CONTACT_PHONE), ("Email:", CONTACT_EMAIL), ("URL:", CONTACT_URL)):
        draw.text((margin, y), label, font=label_font, fill=SLATE)
        draw.text((margin + 70 * s, y), value, font=value_font, fill=BLUE)
        y += 20 * s
    return image


# --- PDF export ------------------------------------------------------------

def fit_to_page(img_width: float, img_height: float,
                page_width: float = PAGE_WIDTH, page_height: float = PAGE_HEIGHT) -> PageFit:
    """ 비율을 유지한 채 페이지 안에 맞추고 가운데 정렬 """
    ratio = min(page_width / img_width, page_height / img_height)
    width, height = img_width * ratio, img_height * ratio
    return PageFit(x=(page_width - width) / 2, y=(page_height - height) / 2, width=width, height=height)


def compose_page(face: Image.Image) -> Image.Image:
    page = Image.new("RGB", (round(PAGE_WIDTH * PX_PER_PT), round(PAGE_HEIGHT * PX_PER_PT)), "white")
    fit = fit_to_page(face.width, face.height)
    size = (round(fit.width * PX_PER_PT), round(fit.height * PX_PER_PT))
    page.paste(face.resize(size, Image.Resampling.LANCZOS), (round(fit.x * PX_PER_PT), round(fit.y * PX_PER_PT)))
    return page


def build_card_pages(card: StudentCard, fetch: Optional[ImageFetcher] = None) -> list[Image.Image]:
    """
    앞면과 뒷면을 각각 래스터화해 페이지 두 장을 만듭니다.
    어느 한 면이라도 실패하면 CardRenderError로 중단하며 부분 결과는 남기지 않습니다.
    """
    fetch = fetch or fetch_image
    photo = _open_image(fetch(card.avatar_url), "student photo")
    qr = _open_image(fetch(card.qr_url), "QR code")
    front = render_front(card, photo)
    back = render_back(card, qr)
    return [compose_page(front), compose_page(back)]


def export_card_pdf(card: StudentCard, fetch: Optional[ImageFetcher] = None) -> bytes:
    pages = build_card_pages(card, fetch)
    buffer = io.BytesIO()
    pages[0].save(buffer, "PDF", save_all=True, append_images=pages[1:], resolution=PDF_RESOLUTION)
    logger.info(f"학생증 PDF 생성 - {len(pages)} pages")
    return buffer.getvalue()


# --- print document --------------------------------------------------------

@dataclass
class PrintImage:
    key: str
    src: str
    alt: str
    state: str = "pending"  # pending / loaded / errored
    data_uri: Optional[str] = None

    @property
    def display_src(self) -> str:
        return self.data_uri or self.src


@dataclass
class PrintDocument:
    card: StudentCard
    images: dict[str, PrintImage]
    front_html: Optional[str] = None
    back_html: Optional[str] = None
    auto_print: bool = False
    settle_order: list[str] = field(default_factory=list)

    @property
    def has_faces(self) -> bool:
        return bool(self.front_html and self.back_html)

    @property
    def settled(self) -> bool:
        return all(img.state != "pending" for img in self.images.values())


def _data_uri(data: bytes) -> str:
    image = Image.open(io.BytesIO(data))
    mime = Image.MIME.get(image.format, "image/png")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def settle_images(images: Iterable[PrintImage], fetch: Optional[ImageFetcher] = None) -> None:
    """ 모든 이미지를 loaded 또는 errored 상태로 만듭니다 """
    fetch = fetch or fetch_image
    for img in images:
        try:
            img.data_uri = _data_uri(fetch(img.src))
            img.state = "loaded"
        except (CardRenderError, UnidentifiedImageError, OSError) as e:
            logger.warning(f"인쇄용 이미지 로드 실패 ({img.key}): {e}")
            img.state = "errored"


def prepare_print_document(
        card: StudentCard,
        render_face: Callable[[str, StudentCard, dict], str],
        fetch: Optional[ImageFetcher] = None,
) -> PrintDocument:
    images = {
        "avatar": PrintImage("avatar", card.avatar_url, "Student Photo"),
        "qr": PrintImage("qr", card.qr_url, "QR Code"),
    }
    doc = PrintDocument(card=card, images=images)

    settle_images(images.values(), fetch)
    doc.settle_order.append("images")

    sources = {key: img.display_src for key, img in images.items()}
    try:
        doc.front_html = render_face("front", card, sources)
        doc.back_html = render_face("back", card, sources)
    except TemplateNotFound as e:
        # 면 템플릿이 없으면 텍스트 버전으로 인쇄
        logger.warning(f"카드 면 템플릿 없음, 텍스트로 대체: {e}")
        doc.front_html = doc.back_html = None

    # 이미지가 모두 정리된 뒤에만 인쇄 트리거를 넣음
    doc.auto_print = doc.settled
    if doc.auto_print:
        doc.settle_order.append("print")
    return doc
