"""One-click demo messages shown next to the input box."""

from typing import List, Optional

from desishield.schemas.analysis_schemas import DemoCase


DEMO_CASES: List[DemoCase] = [
    DemoCase(
        id="en-phishing",
        title="English Phishing",
        text=(
            "URGENT: Your account will be suspended in 2 hours. Please update your KYC "
            "immediately at http://bit.ly/bank-secure-verify to avoid service disruption."
        ),
        type="English",
    ),
    DemoCase(
        id="hi-phishing",
        title="Hindi Phishing",
        text=(
            "प्रिय ग्राहक, आपका बिजली बिल बकाया है। आज रात 9:30 बजे बिजली काट दी जाएगी। "
            "तुरंत इस नंबर पर संपर्क करें: 9876543210।"
        ),
        type="Regional",
    ),
    DemoCase(
        id="code-mixed",
        title="Code-Mixed (Hinglish)",
        text=(
            "Congrats! Aapne jeeta hai 25 Lakh ka lottery prize. Claim karne ke liye apna "
            "Bank Details is link pe share karein: http://scammy-prize.com/claim"
        ),
        type="Code-Mixed",
    ),
    DemoCase(
        id="safe",
        title="Safe Message",
        text="Hi Mom, I will reach home by 7 PM today. Please keep the dinner ready. Love you!",
        type="Safe",
    ),
]


def get_demo_case(case_id: str) -> Optional[DemoCase]:
    for case in DEMO_CASES:
        if case.id == case_id:
            return case
    return None
