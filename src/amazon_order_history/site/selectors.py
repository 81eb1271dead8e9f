from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SiteSelectors:
    """
    Amazon's sign-in and order pages change often; every selector, keyword and URL fragment the
    automation relies on lives here. Candidate tuples are tried in order, first match wins.
    """

    # Sign-in: identifier step
    email_input: str = "#ap_email"
    continue_button: str = "#continue"
    invalid_identifier_alert: str = '.a-alert-content:has-text("Invalid mobile number")'
    alert_content: str = ".a-alert-content"
    identifier_failure_keywords: tuple[str, ...] = ("invalid", "cannot", "problem", "find")

    # Sign-in: secret step
    password_input: str = "#ap_password"
    sign_in_button: str = "#signInSubmit"
    incorrect_password_alert: str = '.a-alert-content:has-text("Your password is incorrect")'
    error_container: str = ".a-alert-content, .a-box-inner .a-alert-container"
    # Alert wording that accompanies an OTP challenge rather than a rejected password.
    second_factor_alert_keywords: tuple[str, ...] = (
        "code",
        "verification",
        "otp",
        "wait",
        "seconds",
        "too many",
    )
    auth_url_fragments: tuple[str, ...] = ("/ap/signin", "/ap/mfa", "/ap/cvf", "/ap/challenge", "/ax/claim")
    post_login_landmarks: tuple[str, ...] = (
        "#nav-link-accountList",
        "#nav-orders",
        "#nav-your-amazon",
        "#nav-item-signout",
    )
    # Visible only while still somewhere inside the sign-in workflow.
    login_landmarks: tuple[str, ...] = ("#ap_email", "#ap_password", ".auth-workflow")

    # Second factor
    second_factor_url_fragments: tuple[str, ...] = ("/ap/mfa", "/ap/cvf")
    second_factor_title_words: tuple[str, ...] = ("Verification", "OTP", "Two-Step", "Authentication required")
    second_factor_indicators: tuple[str, ...] = (
        "#auth-mfa-otpcode",
        ".auth-mfa-form",
        "#auth-mfa-remember-device",
        'input[name="otpCode"]',
        'form:has-text("Two-Step Verification")',
        'form:has-text("Two-Factor Authentication")',
        'form:has-text("Enter the OTP")',
        "#auth-mfa-form",
        '[data-a-target="mfa-otp-field"]',
        'input[placeholder*="verification"]',
        'input[type="tel"]',
    )
    second_factor_phrases: tuple[str, ...] = (
        "verification code",
        "two-step verification",
        "two-factor authentication",
        "security code",
        "enter the code",
        "otp",
        "one-time password",
        "authentication code",
        "mobile number we have on record",
        "enter the otp",
        "sent to your mobile",
    )
    otp_inputs: tuple[str, ...] = (
        "#auth-mfa-otpcode",
        'input[name="otpCode"]',
        'input[id*="mfa"]',
        'input[id*="otp"]',
        'input[name*="mfa"]',
        'input[name*="otp"]',
        'input[placeholder*="code"]',
        '[data-a-target="mfa-otp-field"]',
        'input[type="tel"]',
        'input[type="text"]',
        "input.a-input-text",
    )
    otp_submit_buttons: tuple[str, ...] = (
        "#auth-signin-button",
        'button[type="submit"]',
        'input[type="submit"]',
        'button:has-text("Verify")',
        'button:has-text("Submit")',
        'button:has-text("Continue")',
        ".a-button-input",
        '[aria-labelledby*="submit"]',
        "form .a-button-primary",
        "input.a-button-input",
    )

    # Order history navigation
    orders_nav: tuple[str, ...] = ("#nav-orders", 'a[href*="order-history"]', 'a[href*="your-orders"]')
    order_page_landmarks: tuple[str, ...] = (
        ".your-orders-content",
        ".order-card",
        ".a-box-group",
        'a:has-text("Buy it again")',
        "#ordersContainer",
        "#yourOrders",
        'h1:has-text("Your Orders")',
        "text=Your Orders",
        "text=orders placed in",
        "#orderTypeMenuContainer",
        ".a-pagination",
        ".time-filter-dropdown",
    )
    order_history_url_fragments: tuple[str, ...] = ("order-history", "your-orders", "gp/css/order-history")
    order_content: tuple[str, ...] = (".your-orders-content", ".order-card", ".a-box-group", 'div[class*="order"]')

    # Extraction (plain CSS: evaluated against saved page HTML, not the live page)
    order_containers: tuple[str, ...] = (".order-card.js-order-card", ".js-order-card", ".order-card", ".a-box-group.order")
    order_box_group: str = ".a-box-group"
    order_date: str = ".a-column.a-span3 .a-size-base"
    order_total: str = ".a-column.a-span2 .a-size-base"
    delivery_box: str = ".a-box.delivery-box"
    product_title_link: str = ".yohtmlc-product-title a"
    media_title_link: str = ".yohtmlc-item a"
    product_detail_links: tuple[str, ...] = ('a[href*="/dp/"]', 'a[href*="/gp/product/"]')
    price_candidates: tuple[str, ...] = (
        ".a-price .a-offscreen",
        ".a-color-price",
        ".a-price",
        '[class*="price"]',
    )
    price_ancestor_depth: int = 4
