#!/usr/bin/env python3
"""
Generate a synthetic Swedish statute PDF for trying out the upload pipeline.

The text is invented but follows the citation layout of Swedish law
("1 kap. 1 §"), so uploading it exercises the citation-aware chunker:
the short sections are merged into chunks of roughly 800 characters.

Usage:
    python scripts/generate_sample_pdf.py

Output:
    data/samples/exempellag.pdf
"""

from pathlib import Path

from fpdf import FPDF

STATUTE = {
    "1 kap. Inledande bestämmelser": [
        ("1 §", "Denna lag gäller för verksamhet som bedrivs med tillstånd "
                "enligt 2 kap. och för den som utövar tillsyn över sådan "
                "verksamhet."),
        ("2 §", "Med verksamhetsutövare avses i denna lag den som bedriver "
                "eller avser att bedriva tillståndspliktig verksamhet."),
        ("3 §", "Bestämmelserna i denna lag gäller inte om annat följer av "
                "lag eller förordning som meddelats med stöd av lag."),
    ],
    "2 kap. Tillstånd": [
        ("1 §", "Verksamhet som avses i 1 kap. 1 § får inte bedrivas utan "
                "tillstånd av tillsynsmyndigheten."),
        ("2 §", "En ansökan om tillstånd ska vara skriftlig och innehålla de "
                "uppgifter som behövs för att pröva ansökan."),
        ("3 §", "Tillstånd får meddelas endast om verksamhetsutövaren visar "
                "att verksamheten kan bedrivas utan olägenhet för människors "
                "hälsa eller miljön."),
        ("4 §", " ".join([
            "Tillståndet ska förenas med de villkor som behövs för att "
            "förebygga eller motverka skada eller olägenhet.",
            "Villkoren får avse verksamhetens omfattning, tekniska "
            "utformning, kontroll och redovisning samt den tid under vilken "
            "verksamheten får bedrivas.",
            "Tillsynsmyndigheten får i villkoren ange att verksamhetsutövaren "
            "ska lämna de uppgifter som behövs för tillsynen och att sådana "
            "uppgifter ska lämnas inom viss tid.",
            "Om det finns särskilda skäl får tillsynsmyndigheten skjuta upp "
            "avgörandet av frågor om villkor under en prövotid och under "
            "denna tid fastställa provisoriska villkor.",
            "Ett tillstånd enligt denna paragraf får inte överlåtas utan "
            "tillsynsmyndighetens medgivande.",
        ])),
    ],
    "3 kap. Tillsyn och påföljder": [
        ("1 §", "Tillsynsmyndigheten ska kontrollera att denna lag och "
                "meddelade villkor följs."),
        ("2 §", "Den som bedriver verksamhet utan tillstånd döms till böter "
                "eller fängelse i högst ett år."),
    ],
}


class StatuteDocument(FPDF):
    """Custom PDF with header and footer for a statute print."""

    def header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(100, 100, 100)
        self.cell(0, 8, "Lag (2099:1) om exempelverksamhet", 0, 1, "C")
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Sida {self.page_no()}/{{nb}} | Syntetisk text", 0, 0, "C")

    def chapter_title(self, title: str):
        self.set_font("Helvetica", "B", 13)
        self.set_text_color(0, 0, 0)
        self.ln(6)
        self.cell(0, 10, title, 0, 1)
        self.ln(1)

    def paragraph(self, chapter: int, section: str, text: str):
        self.set_font("Helvetica", "", 10)
        self.set_text_color(30, 30, 30)
        self.multi_cell(0, 5.5, f"{chapter} kap. {section} {text}")
        self.ln(2)


def generate_statute() -> Path:
    pdf = StatuteDocument()
    pdf.alias_nb_pages()
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    pdf.set_font("Helvetica", "", 10)
    pdf.multi_cell(
        0, 5.5,
        "Utfärdad den 1 januari 2099. Enligt riksdagens beslut föreskrivs "
        "följande.",
    )

    for chapter_no, (title, sections) in enumerate(STATUTE.items(), start=1):
        pdf.chapter_title(title)
        for section, text in sections:
            pdf.paragraph(chapter_no, section, text)

    output_path = Path("data/samples/exempellag.pdf")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    pdf.output(str(output_path))
    return output_path


if __name__ == "__main__":
    output_path = generate_statute()
    print(f"Generated: {output_path} ({output_path.stat().st_size:,} bytes)")
