import os


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("JEWELBILL_DATABASE_URI", "sqlite:///rk_jewellers.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BILL_FOLDER = os.environ.get("JEWELBILL_BILL_FOLDER", "generated_bills")
    SHOP_TIMEZONE = "Asia/Kolkata"

    # Guard for bulk resets. Not a credential.
    RESET_PASSWORD = "0077"

    PAYMENT_MODES = ("CASH", "PHONEPE", "DISCOUNT")
    PAYMENT_RECEIVERS = ("SHANKAR", "RAMAKRISHNA", "PAVAN", "ARAVIND", "OTHERS")

    DEFAULT_SHOP = {
        "name": "RK Jewellers",
        "address": "Main Road, Achampet, Telangana",
        "mobile": "9440370408, 9490324969",
        "gstin": None,
    }
