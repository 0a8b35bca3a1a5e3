"""
Static marketing landing page. No data dependency.
"""

from __future__ import annotations

from html import escape
from typing import List, Tuple

from pydantic import BaseModel, Field


class Testimonial(BaseModel):
    quote: str
    author: str


class FooterColumn(BaseModel):
    heading: str
    lines: List[str] = Field(default_factory=list)


class LandingPage(BaseModel):
    brand: str
    headline: str
    tagline: str
    nav_links: List[Tuple[str, str]]
    calls_to_action: List[str]
    testimonial: Testimonial
    footer: List[FooterColumn]
    copyright: str


LANDING_PAGE = LandingPage(
    brand="Builder Video",
    headline="Like Netflix, but better",
    tagline="Building the future of video, one pixel at a time",
    nav_links=[
        ("Home", "/"),
        ("Features", "/features"),
        ("Pricing", "/pricing"),
        ("Contact", "/contact"),
        ("Admin", "/admin"),
    ],
    calls_to_action=["Get Started", "Learn More"],
    testimonial=Testimonial(
        quote=(
            "Builder Video has transformed our digital presence completely. "
            "Their innovative solutions have helped us reach new heights."
        ),
        author="John Doe, CEO of TechCorp",
    ),
    footer=[
        FooterColumn(heading="About Us", lines=["Like Netflix, but better"]),
        FooterColumn(
            heading="Contact",
            lines=["Email: info@buildervideo.com", "Phone: (555) 123-4567"],
        ),
        FooterColumn(heading="Follow Us", lines=["Twitter", "LinkedIn", "Facebook"]),
        FooterColumn(heading="Newsletter", lines=["Enter your email to subscribe"]),
    ],
    copyright="© 2024 Builder Video. All rights reserved.",
)


def render_landing_page(page: LandingPage = LANDING_PAGE) -> str:
    """Render the landing page as a standalone HTML document."""
    nav = "".join(f'<a href="{escape(href)}">{escape(label)}</a>' for label, href in page.nav_links)
    buttons = "".join(f"<button>{escape(label)}</button>" for label in page.calls_to_action)
    columns = "".join(
        "<div><h3>{}</h3>{}</div>".format(
            escape(column.heading),
            "".join(f"<p>{escape(line)}</p>" for line in column.lines),
        )
        for column in page.footer
    )
    return (
        "<!DOCTYPE html>"
        f'<html lang="en"><head><meta charset="utf-8"><title>{escape(page.brand)}</title></head>'
        "<body>"
        f'<nav><span class="brand">{escape(page.brand)}</span>{nav}</nav>'
        "<section class=\"hero\">"
        f"<h1>{escape(page.brand)}</h1>"
        f"<h2>{escape(page.headline)}</h2>"
        f"<p>{escape(page.tagline)}</p>"
        f"{buttons}"
        "</section>"
        '<section class="testimonial">'
        f"<blockquote>&ldquo;{escape(page.testimonial.quote)}&rdquo;</blockquote>"
        f"<p>- {escape(page.testimonial.author)}</p>"
        "</section>"
        f"<footer>{columns}<p>{escape(page.copyright)}</p></footer>"
        "</body></html>"
    )


__all__ = ["LANDING_PAGE", "LandingPage", "render_landing_page"]
