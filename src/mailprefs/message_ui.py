"""Helpers for displaying a message: headers, dates, addresses, MDNs."""

import gettext
import html
import logging
import re
from datetime import datetime
from email.message import Message
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.policy import default as email_policy
from email.utils import formatdate, getaddresses, make_msgid
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .constants import ADD_SOURCE, DATE_FORMAT, MAIL_HDR, SEND_MDN, TIME_FORMAT, USE_TRASH
from .exceptions import ImapError
from .hooks import MDN_CHECK, HookRegistry
from .maillog import MDN
from .mailbox import MailboxInfo

_ = gettext.gettext

logger = logging.getLogger("mailprefs.message_ui")

LIST_HEADERS = (
    "list-help",
    "list-unsubscribe",
    "list-subscribe",
    "list-owner",
    "list-post",
    "list-archive",
    "list-id",
)
MDNSENT_FLAG = "$MDNSent"
# Longer address lists are collapsed behind a show/hide toggle.
MAX_INLINE_ADDRESSES = 15


def natural_key(s: str) -> list:
    """Sort key giving case-insensitive natural ordering ("x2" < "x10")."""
    return [int(t) if t.isdigit() else t.lower() for t in re.split(r"(\d+)", s)]


def parse_list_urls(value: str) -> list[str | None]:
    """URLs of an RFC 2369 List-* header. ``None`` stands for "NO" (no posting)."""
    value = value.strip()
    if re.match(r"NO\b", value, re.IGNORECASE):
        return [None]
    return [url.strip() for url in re.findall(r"<([^>]*)>", value)]


def add_query(url: str, **params) -> str:
    """Return url with extra query parameters (None values are skipped)."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend((k, v) for k, v in params.items() if v is not None)
    return urlunsplit(parts._replace(query=urlencode(query)))


def html_link(url: str, title: str) -> str:
    """Opening ``<a>`` tag; the caller appends the text and ``</a>``."""
    return f'<a href="{html.escape(url)}" title="{html.escape(title)}">'


def _split_address(addr: str) -> tuple[str, str]:
    local, _sep, domain = addr.rpartition("@")
    return (local, domain.lower()) if local else (addr, "")


def mdn_confirmation_needed(headers: Message) -> bool:
    """Does RFC 3798 [2.1] require asking the user before sending an MDN?"""
    return_paths = headers.get_all("Return-Path") or []
    if len(return_paths) != 1 or not str(return_paths[0]).strip():
        return True

    mdn_addrs = [a for _n, a in getaddresses([str(headers.get("Disposition-Notification-To", ""))]) if a]
    if len(set(mdn_addrs)) != 1:
        return True

    return_addr = getaddresses([str(return_paths[0])])[0][1]
    if not return_addr:
        return True
    # Local part compares case-sensitively, domain case-insensitively.
    return _split_address(mdn_addrs[0]) != _split_address(return_addr)


def build_mdn(
    headers: Message,
    reporting_ua: str,
    from_addr: str,
    type: str = "displayed",
    manual_action: bool = False,
    sent_manually: bool = False,
) -> MIMEMultipart:
    """Build a multipart/report disposition notification for a message."""
    return_addr = str(headers.get("Disposition-Notification-To", ""))
    msg_id = str(headers.get("Message-ID", "")).strip()

    msg = MIMEMultipart("report", report_type="disposition-notification")
    msg["From"] = from_addr
    msg["To"] = return_addr
    msg["Subject"] = _("Disposition Notification")
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid(domain=reporting_ua)
    if msg_id:
        msg["In-Reply-To"] = msg_id

    text = _(
        'The message sent on %s to %s with subject "%s" has been %s.\n\n'
        "This is no guarantee that the message has been read or understood."
    ) % (
        headers.get("Date", _("unknown date")),
        headers.get("To", _("unknown recipient")),
        headers.get("Subject", ""),
        type,
    )
    msg.attach(MIMEText(text, "plain", "utf-8"))

    fields = [f"Reporting-UA: {reporting_ua}; mailprefs"]
    if headers.get("Original-Recipient"):
        fields.append(f"Original-Recipient: {headers['Original-Recipient']}")
    fields.append(f"Final-Recipient: rfc822; {from_addr}")
    if msg_id:
        fields.append(f"Original-Message-ID: {msg_id}")
    action = "manual-action" if manual_action else "automatic-action"
    sending = "MDN-sent-manually" if sent_manually else "MDN-sent-automatically"
    fields.append(f"Disposition: {action}/{sending}; {type}")
    notification = MIMEBase("message", "disposition-notification")
    notification.set_payload("\r\n".join(fields) + "\r\n")
    msg.attach(notification)

    original = MIMEBase("text", "rfc822-headers")
    original.set_payload("".join(f"{k}: {v}\r\n" for k, v in headers.items()))
    msg.attach(original)

    return msg


class MessageUi:
    """Message display logic shared by the different views.

    Collaborators are optional; features needing a missing one degrade:
    without ``imap`` the $MDNSent keyword is not used, without ``maillog``
    nothing records sent MDNs, and so on.
    """

    def __init__(
        self,
        prefs,
        hooks: HookRegistry | None = None,
        maillog=None,
        sentmail=None,
        mailer=None,
        imap=None,
        server_name: str = "localhost",
        from_addr: str | None = None,
        compose_url: str = "compose",
    ):
        self.prefs = prefs
        self.hooks = hooks
        self.maillog = maillog
        self.sentmail = sentmail
        self.mailer = mailer
        self.imap = imap
        self.server_name = server_name
        self.from_addr = from_addr or f"postmaster@{server_name}"
        self.compose_url = compose_url

    def basic_headers(self) -> dict[str, str]:
        """Header name -> translated label for the always-shown headers."""
        return {
            "date": _("Date"),
            "from": _("From"),
            "to": _("To"),
            "cc": _("Cc"),
            "bcc": _("Bcc"),
            "reply-to": _("Reply-To"),
            "subject": _("Subject"),
        }

    def user_headers(self) -> list[str]:
        """Extra headers the user asked to see, deduplicated and sorted."""
        user_hdrs = self.prefs.get_value(MAIL_HDR)
        if isinstance(user_hdrs, (list, tuple)):
            user_hdrs = "\n".join(str(h) for h in user_hdrs)
        user_hdrs = (user_hdrs or "").strip()
        if not user_hdrs:
            return []

        names = [h.strip() for h in re.split(r"[\n\r]+", user_hdrs.replace(":", ""))]
        return sorted((h for h in dict.fromkeys(names) if h), key=natural_key)

    def local_time(self, date: datetime, now: datetime | None = None) -> str:
        """Format a message date in local time; only the time if it's today."""
        local = date.astimezone()
        now = (now or datetime.now()).astimezone()
        time_str = local.strftime(self.prefs.get_value(TIME_FORMAT))
        tz = local.strftime("%Z")

        if local.date() != now.date():
            date_str = local.strftime(self.prefs.get_value(DATE_FORMAT))
            return f"{date_str} ({time_str} {tz})"

        return _("Today, %s %s") % (time_str, tz)

    def list_information(self, headers: Message) -> dict:
        """Mailing list info: whether List-* headers exist, and the post address."""
        ret = {"exists": False, "reply_list": None}

        if any(h in headers for h in LIST_HEADERS):
            ret["exists"] = True

            val = headers.get("list-post")
            if val:
                for url in parse_list_urls(str(val)):
                    if url is None:
                        break
                    if url.lower().startswith("mailto:"):
                        ret["reply_list"] = url[7:].split("?", 1)[0]
                        break

        return ret

    def _address_html(self, addr, add_link: str | None, link: bool, minimal: bool) -> str:
        text = str(addr)
        ret = text if minimal else html.escape(text)

        if link:
            url = add_query(self.compose_url, to=text)
            ret = html_link(url, _("New Message to %s") % text) + html.escape(text) + "</a>"

        if add_link:
            url = add_query(
                add_link,
                actionID="add_address",
                address=addr.addr_spec,
                name=addr.display_name or None,
            )
            ret += (
                html_link(url, _("Add %s to my Address Book") % addr.addr_spec)
                + '<span class="iconImg addrbookaddImg"></span></a>'
            )

        return ret

    def build_address_links(
        self,
        addresses: str | list[str],
        add_url: str | None = None,
        link: bool = True,
        minimal: bool = False,
        contacts_available: bool = False,
    ) -> str:
        """HTML for an address header, with compose/address book links."""
        if isinstance(addresses, (list, tuple)):
            addresses = ", ".join(addresses)

        add_link = None
        if add_url is not None and link and self.prefs.get_value(ADD_SOURCE) and contacts_available:
            add_link = add_url

        groups = email_policy.header_factory("To", addresses).groups if addresses.strip() else ()
        addr_array = []
        for group in groups:
            if group.display_name is not None:
                members = [self._address_html(a, add_link, link, minimal) for a in group.addresses]
                name = group.display_name if minimal else html.escape(group.display_name)
                addr_array.append(name + ":" + (" " + ", ".join(members) if members else ""))
            else:
                for addr in group.addresses:
                    addr_array.append(self._address_html(addr, add_link, link, minimal))

        if minimal:
            return ", ".join(addr_array)

        # An empty list means the recipients were purposely not disclosed.
        if not addr_array:
            return _("Undisclosed Recipients")

        ret = '<span class="nowrap">' + ',</span> <span class="nowrap">'.join(addr_array) + "</span>"
        if link and len(addr_array) > MAX_INLINE_ADDRESSES:
            ret = (
                "<span>"
                '<span onclick="[ this, this.next(), this.next(1) ].invoke(\'toggle\')" '
                'class="widget largeaddrlist">'
                + _("Show Addresses (%d)") % len(addr_array)
                + "</span>"
                '<span onclick="[ this, this.previous(), this.next() ].invoke(\'toggle\')" '
                'class="widget largeaddrlist" style="display:none">'
                + _("Hide Addresses")
                + "</span>"
                '<span style="display:none">' + ret + "</span></span>"
            )

        return ret

    def move_after_action(self, mailbox: MailboxInfo) -> bool:
        """Advance to the next message after deleting one?"""
        return not mailbox.hide_deleted and not self.prefs.get_value(USE_TRASH)

    def _mdn_already_sent(self, mailbox: MailboxInfo, uid, msg_id: str) -> tuple[bool, bool]:
        """Returns (sent, use_flag)."""
        # RFC 3503 [3.1]: the $MDNSent keyword, when the mailbox can store it.
        if self.imap is not None and mailbox.allows_flag(MDNSENT_FLAG):
            try:
                flags = self.imap.fetch_flags(mailbox.name, uid)
            except ImapError as e:
                logger.debug("Could not fetch flags of %s/%s: %s", mailbox, uid, e)
                return False, True
            return MDNSENT_FLAG.lower() in {f.lower() for f in flags}, True
        if self.maillog is not None:
            return self.maillog.sent_mdn(msg_id, "displayed"), False
        return False, False

    def mdn_check(self, mailbox: MailboxInfo, uid, headers: Message, confirmed: bool = False) -> bool:
        """Send an MDN for a displayed message if one is requested.

        Returns True if the user must confirm before the MDN is sent.
        """
        pref_val = self.prefs.get_value(SEND_MDN)
        if not pref_val or mailbox.readonly:
            return False

        return_addr = headers.get("Disposition-Notification-To")
        if not return_addr:
            return False
        return_addr = str(return_addr)

        msg_id = str(headers.get("Message-ID", "")).strip()
        mdn_sent, mdn_flag = self._mdn_already_sent(mailbox, uid, msg_id)
        if mdn_sent:
            return False

        if not confirmed and (int(pref_val) == 1 or mdn_confirmation_needed(headers)):
            if self.hooks is None or not self.hooks.has_hook(MDN_CHECK):
                return True
            if self.hooks.call(MDN_CHECK, headers):
                return True

        success = False
        if self.mailer is None:
            logger.warning("No mailer configured; MDN for %s not sent", msg_id)
        else:
            try:
                self.mailer.send_message(build_mdn(
                    headers,
                    self.server_name,
                    self.from_addr,
                    sent_manually=confirmed,
                ))
                success = True
            except OSError as e:
                logger.warning("Sending MDN for %s failed: %s", msg_id, e)

        if success:
            if self.maillog is not None:
                self.maillog.log(MDN, msg_id, "displayed")
            if mdn_flag:
                try:
                    self.imap.add_flags(mailbox.name, uid, [MDNSENT_FLAG])
                except ImapError as e:
                    logger.warning("Could not flag %s/%s as %s: %s", mailbox, uid, MDNSENT_FLAG, e)

        if self.sentmail is not None:
            self.sentmail.log(MDN, "", return_addr, success)

        return False
