"""
WhatsApp Client - Selenium-Based WhatsApp Web Automation
=========================================================

Blocking, single-session driver for WhatsApp Web. Every method touches the
browser synchronously; callers on the event loop go through the adapter,
which serializes access and runs these calls in worker threads.
"""

import logging
import re
import time
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple

from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import (
    NoSuchElementException,
    TimeoutException,
    StaleElementReferenceException,
)
from webdriver_manager.chrome import ChromeDriverManager

from ..config import WhatsAppSettings

logger = logging.getLogger(__name__)

WHATSAPP_WEB_URL = "https://web.whatsapp.com/"


class WhatsAppClientError(Exception):
    """Base exception for WhatsApp client errors."""
    pass


class PageState(Enum):
    """What WhatsApp Web is currently showing."""
    QR = "qr"
    CHATS = "chats"
    LOADING = "loading"


@dataclass(frozen=True)
class MessageKey:
    """Parsed form of a message row ``data-id`` attribute."""
    from_me: bool
    chat_id: str
    message_id: str
    author: Optional[str] = None


@dataclass(frozen=True)
class RawMessage:
    """A message row as scraped from the open conversation."""
    data_id: str
    pre_text: str
    text: Optional[str]


# "[10:32, 18/10/2026] Alice: " / "[10:32 AM, 10/18/2026] +62 812-345: "
_PRE_TEXT_RE = re.compile(r"^\[(?P<when>[^\]]+)\]\s*(?P<name>.*?):\s*$")
_PRE_TEXT_FORMATS = (
    "%H:%M, %d/%m/%Y",
    "%I:%M %p, %m/%d/%Y",
    "%H:%M, %m/%d/%Y",
    "%H.%M, %d/%m/%Y",
    "%H:%M, %Y-%m-%d",
)


def parse_message_id(data_id: Optional[str]) -> Optional[MessageKey]:
    """
    Parse a WhatsApp Web message id.

    Format: ``<fromMe>_<chatId>_<messageId>[_<author>]`` where ``author`` is
    only present for group messages, e.g.
    ``false_120363025246125486@g.us_3EB0C767D26A1B4A_6281234567@c.us``.
    """
    if not data_id:
        return None
    parts = data_id.split("_")
    if len(parts) < 3 or parts[0] not in ("true", "false"):
        return None
    if "@" not in parts[1] or not parts[2]:
        return None
    author = parts[3] if len(parts) > 3 and parts[3] else None
    return MessageKey(
        from_me=parts[0] == "true",
        chat_id=parts[1],
        message_id=parts[2],
        author=author,
    )


def parse_pre_plain_text(pre_text: Optional[str]) -> Tuple[Optional[int], Optional[str]]:
    """Extract (unix timestamp, display name) from ``data-pre-plain-text``."""
    if not pre_text:
        return None, None
    match = _PRE_TEXT_RE.match(pre_text.strip())
    if not match:
        return None, None

    name = match.group("name").strip() or None
    when = match.group("when").strip()
    for fmt in _PRE_TEXT_FORMATS:
        try:
            return int(datetime.strptime(when, fmt).timestamp()), name
        except ValueError:
            continue
    return None, name


class WhatsAppClient:
    """
    Selenium-based WhatsApp Web client.
    """

    SELECTORS = {
        "qr_container": 'div[data-ref]',
        "qr_canvas": 'div[data-ref] canvas, canvas[aria-label*="Scan this QR code"]',
        "chat_list": '#pane-side, div[aria-label="Chat list"], div[data-testid="chat-list"]',
        "chat_row": '#pane-side div[role="listitem"], #pane-side div[role="row"]',
        "chat_title": 'span[title]',
        "unread_badge": 'span[aria-label*="unread message"], span[data-testid="icon-unread-count"]',
        "search_box": 'div[contenteditable="true"][data-tab="3"]',
        "message_input": 'div[contenteditable="true"][data-tab="10"]',
        "message_input_alt": 'footer div[contenteditable="true"]',
        "conversation_title": '#main header span[dir="auto"]',
        "conversation_title_alt": '#main header span[title]',
        "message_row": '#main div[data-id]',
        "message_meta": 'div[data-pre-plain-text]',
    }

    def __init__(self, settings: WhatsAppSettings):
        self._settings = settings
        self.driver = self._create_driver(settings)
        self._navigate_to_whatsapp()

    def _create_driver(self, settings: WhatsAppSettings) -> webdriver.Chrome:
        """Create and configure Chrome WebDriver."""
        options = webdriver.ChromeOptions()

        if settings.headless:
            options.add_argument("--headless=new")
            options.add_argument("--window-size=1280,900")
        else:
            options.add_argument("--start-maximized")

        options.add_argument("--disable-gpu")
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-setuid-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        # WhatsApp Web refuses headless user agents
        options.add_argument(
            "user-agent=Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        )

        profile_dir = settings.session_dir.resolve()
        profile_dir.mkdir(parents=True, exist_ok=True)
        options.add_argument(f"--user-data-dir={profile_dir}")
        logger.info(f"Using Chrome profile at: {profile_dir}")

        service = ChromeService(ChromeDriverManager().install())
        return webdriver.Chrome(service=service, options=options)

    def _navigate_to_whatsapp(self) -> None:
        """Navigate to WhatsApp Web."""
        self.driver.get(WHATSAPP_WEB_URL)
        logger.info("Opened WhatsApp Web")

    def _random_delay(self, min_s: float = 0.3, max_s: float = 1.0) -> None:
        """Add human-like random delay."""
        time.sleep(random.uniform(min_s, max_s))

    # ── Session state ──────────────────────────────────────────────

    def detect_page(self) -> PageState:
        """Classify the current page. WebDriver errors propagate."""
        if self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS["qr_canvas"]):
            return PageState.QR
        if self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS["chat_list"]):
            return PageState.CHATS
        return PageState.LOADING

    def connection_state(self) -> str:
        return {
            PageState.QR: "UNPAIRED",
            PageState.CHATS: "CONNECTED",
            PageState.LOADING: "OPENING",
        }[self.detect_page()]

    def qr_reference(self) -> Optional[str]:
        """The raw QR payload; changes every time WhatsApp rotates the code."""
        containers = self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS["qr_container"])
        if not containers:
            return None
        return containers[0].get_attribute("data-ref")

    def qr_image(self) -> Optional[str]:
        """Screenshot of the QR canvas as a PNG data URL."""
        canvases = self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS["qr_canvas"])
        if not canvases:
            return None
        try:
            return f"data:image/png;base64,{canvases[0].screenshot_as_base64}"
        except StaleElementReferenceException:
            # QR rotated mid-capture, next poll picks up the new one
            return None

    # ── Chat list ──────────────────────────────────────────────────

    def _chat_rows(self) -> List:
        return self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS["chat_row"])

    def _row_title(self, row) -> Optional[str]:
        try:
            titles = row.find_elements(By.CSS_SELECTOR, self.SELECTORS["chat_title"])
            for el in titles:
                title = el.get_attribute("title")
                if title:
                    return title
        except StaleElementReferenceException:
            pass
        return None

    def list_chat_titles(self) -> List[str]:
        """Titles of the chats currently rendered in the side pane."""
        titles = []
        for row in self._chat_rows():
            title = self._row_title(row)
            if title and title not in titles:
                titles.append(title)
        return titles

    def unread_chat_titles(self) -> List[str]:
        """Titles of chats that show an unread badge."""
        titles = []
        for row in self._chat_rows():
            try:
                if not row.find_elements(By.CSS_SELECTOR, self.SELECTORS["unread_badge"]):
                    continue
            except StaleElementReferenceException:
                continue
            title = self._row_title(row)
            if title:
                titles.append(title)
        return titles

    # ── Conversations ──────────────────────────────────────────────

    def current_chat_title(self) -> Optional[str]:
        for key in ("conversation_title", "conversation_title_alt"):
            for el in self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS[key]):
                try:
                    text = (el.get_attribute("title") or el.text or "").strip()
                except StaleElementReferenceException:
                    continue
                if text:
                    return text
        return None

    def open_chat(self, title: str) -> bool:
        """Open a chat by searching for its exact title."""
        if self.current_chat_title() == title:
            return True

        try:
            search_box = self.driver.find_element(By.CSS_SELECTOR, self.SELECTORS["search_box"])
        except NoSuchElementException:
            logger.warning("Search box not found")
            return False

        search_box.click()
        self._random_delay(0.2, 0.5)
        search_box.send_keys(Keys.CONTROL + "a")
        search_box.send_keys(Keys.BACKSPACE)
        search_box.send_keys(title)
        time.sleep(1.5)
        search_box.send_keys(Keys.ENTER)
        time.sleep(1.5)

        opened = self.current_chat_title()
        if opened != title:
            logger.warning(f"Could not open chat '{title}' (open: {opened!r})")
            return False
        return True

    def open_phone_chat(self, digits: str, timeout: int = 30) -> bool:
        """Open a direct chat through the click-to-chat URL."""
        self.driver.get(f"{WHATSAPP_WEB_URL}send?phone={digits}")
        try:
            WebDriverWait(self.driver, timeout).until(
                EC.presence_of_element_located(
                    (By.CSS_SELECTOR, self.SELECTORS["message_input_alt"])
                )
            )
            return True
        except TimeoutException:
            logger.warning(f"Timeout opening chat for {digits}")
            return False

    def _find_message_input(self):
        for key in ("message_input", "message_input_alt"):
            elements = self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS[key])
            if elements:
                return elements[0]
        return None

    def send_message(self, text: str) -> bool:
        """Send a message in the current chat."""
        input_box = self._find_message_input()
        if not input_box:
            logger.error("Could not find message input box")
            return False

        input_box.click()
        self._random_delay(0.2, 0.4)

        # Shift+Enter keeps multi-line messages in one bubble
        lines = text.split("\n")
        for i, line in enumerate(lines):
            input_box.send_keys(line)
            if i < len(lines) - 1:
                input_box.send_keys(Keys.SHIFT, Keys.ENTER)

        self._random_delay(0.2, 0.4)
        input_box.send_keys(Keys.ENTER)

        logger.info(f"Sent message: {text[:50]}")
        return True

    def send_to_chat(self, title: str, text: str) -> bool:
        return self.open_chat(title) and self.send_message(text)

    def send_to_phone(self, digits: str, text: str) -> bool:
        return self.open_phone_chat(digits) and self.send_message(text)

    def _extract_text_from_message(self, element) -> Optional[str]:
        """Extract text content from a message element."""
        text_selectors = [
            'span.selectable-text.copyable-text > span',
            'span.selectable-text.copyable-text',
            'span.selectable-text',
            'span[dir="ltr"]',
        ]

        for selector in text_selectors:
            try:
                for text_el in element.find_elements(By.CSS_SELECTOR, selector):
                    text = text_el.text.strip()
                    if text:
                        return text
            except StaleElementReferenceException:
                return None
        return None

    def read_open_chat(self) -> Tuple[Optional[str], List[RawMessage]]:
        """Return (chat title, message rows) for the open conversation."""
        title = self.current_chat_title()
        if title is None:
            return None, []

        messages = []
        for row in self.driver.find_elements(By.CSS_SELECTOR, self.SELECTORS["message_row"]):
            try:
                data_id = row.get_attribute("data-id")
                meta = row.find_elements(By.CSS_SELECTOR, self.SELECTORS["message_meta"])
                pre_text = meta[0].get_attribute("data-pre-plain-text") if meta else ""
            except StaleElementReferenceException:
                continue
            messages.append(RawMessage(
                data_id=data_id or "",
                pre_text=pre_text or "",
                text=self._extract_text_from_message(row),
            ))
        return title, messages

    def read_chat(self, title: str) -> Tuple[Optional[str], List[RawMessage]]:
        if not self.open_chat(title):
            return None, []
        return self.read_open_chat()

    def close(self) -> None:
        """Close browser and cleanup."""
        try:
            self.driver.quit()
            logger.info("Browser closed")
        except Exception as e:
            logger.debug(f"Error closing browser: {e}")
