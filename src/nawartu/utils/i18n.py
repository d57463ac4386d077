"""
Bilingual user-facing messages.

Every notification, validation error and placeholder shown to a user comes
from this table so that Arabic and English stay in step.
"""

SUPPORTED_LANGUAGES = ("ar", "en")

MESSAGES: dict[str, dict[str, str]] = {
    # Generic
    "error": {"en": "Error", "ar": "خطأ"},
    "success": {"en": "Success", "ar": "تم بنجاح"},

    # Availability gateway
    "availability.load_failed": {
        "en": "Failed to load availability data",
        "ar": "فشل في تحميل بيانات التوفر",
    },
    "availability.check_failed": {
        "en": "Failed to check availability",
        "ar": "فشل في التحقق من التوفر",
    },
    "availability.reserve_failed": {
        "en": "Failed to reserve dates",
        "ar": "فشل في حجز التواريخ",
    },
    "availability.release_failed": {
        "en": "Failed to release reservation",
        "ar": "فشل في إلغاء الحجز المؤقت",
    },
    "availability.confirm_failed": {
        "en": "Failed to confirm booking",
        "ar": "فشل في تأكيد الحجز",
    },

    # Reviews
    "review.rating_required.title": {"en": "Rating Required", "ar": "التقييم مطلوب"},
    "review.rating_required": {
        "en": "Please select a rating between 1 and 5 stars.",
        "ar": "يرجى اختيار تقييم بين 1 و 5 نجوم.",
    },
    "review.incomplete.title": {"en": "Review Incomplete", "ar": "التقييم غير مكتمل"},
    "review.incomplete": {
        "en": "Please provide both a title and comment for your review.",
        "ar": "يرجى تقديم عنوان وتعليق للتقييم.",
    },
    "review.submitted.title": {"en": "Review Submitted", "ar": "تم إرسال التقييم"},
    "review.submitted": {
        "en": "Thank you for your review! It will help other guests.",
        "ar": "شكراً لك على تقييمك! سيساعد الضيوف الآخرين.",
    },
    "review.failed": {
        "en": "Failed to submit review. Please try again.",
        "ar": "فشل في إرسال التقييم. يرجى المحاولة مرة أخرى.",
    },
    "review.response_required.title": {"en": "Response Required", "ar": "الرد مطلوب"},
    "review.response_required": {
        "en": "Please enter a response before submitting.",
        "ar": "يرجى كتابة رد قبل الإرسال.",
    },
    "review.response_submitted.title": {"en": "Response Submitted", "ar": "تم إرسال الرد"},
    "review.response_submitted": {
        "en": "Your response has been added to the review.",
        "ar": "تمت إضافة ردك إلى التقييم.",
    },
    "review.response_failed": {
        "en": "Failed to submit response. Please try again.",
        "ar": "فشل في إرسال الرد. يرجى المحاولة مرة أخرى.",
    },

    # Uploads
    "upload.invalid_file.title": {"en": "Invalid File", "ar": "ملف غير صالح"},
    "upload.invalid_file": {
        "en": "{name} is not an image file.",
        "ar": "{name} ليس ملف صورة.",
    },
    "upload.too_large.title": {"en": "File Too Large", "ar": "الملف كبير جداً"},
    "upload.too_large": {
        "en": "{name} is larger than {limit}MB.",
        "ar": "{name} أكبر من {limit} ميغابايت.",
    },
    "upload.too_many.title": {"en": "Too Many Images", "ar": "عدد كبير من الصور"},
    "upload.too_many": {
        "en": "Maximum {limit} images allowed. You can upload {remaining} more.",
        "ar": "الحد الأقصى {limit} صور. يمكنك رفع {remaining} صور إضافية.",
    },
    "upload.failed.title": {"en": "Upload Failed", "ar": "فشل الرفع"},
    "upload.failed": {
        "en": "Failed to upload {name}: {reason}",
        "ar": "فشل في رفع {name}: {reason}",
    },
    "upload.complete.title": {"en": "Upload Complete", "ar": "اكتمل الرفع"},
    "upload.complete": {
        "en": "Successfully uploaded {count} image(s).",
        "ar": "تم رفع {count} صورة بنجاح.",
    },
    "avatar.updated.title": {"en": "Avatar Updated", "ar": "تم تحديث الصورة"},
    "avatar.updated": {
        "en": "Your profile picture has been successfully updated.",
        "ar": "تم تحديث صورتك الشخصية بنجاح.",
    },

    # Profile
    "profile.updated.title": {"en": "Profile updated", "ar": "تم التحديث"},
    "profile.updated": {
        "en": "Your profile has been updated successfully.",
        "ar": "تم تحديث ملفك الشخصي بنجاح.",
    },
    "profile.update_failed": {
        "en": "Failed to update profile.",
        "ar": "فشل في تحديث الملف الشخصي.",
    },

    # Host upgrade
    "host.upgraded": {
        "en": "Successfully registered as a host!",
        "ar": "تم تسجيلك كمضيف بنجاح!",
    },
    "host.not_upgraded": {
        "en": "Unable to complete host registration",
        "ar": "تعذر إكمال التسجيل كمضيف",
    },
    "host.failed": {
        "en": "Failed to register as host",
        "ar": "فشل التسجيل كمضيف",
    },

    # Payments
    "payment.invalid_amount": {
        "en": "The booking total must be greater than zero.",
        "ar": "يجب أن يكون إجمالي الحجز أكبر من صفر.",
    },
    "payment.invalid_nights": {
        "en": "A booking must cover at least one night.",
        "ar": "يجب أن يشمل الحجز ليلة واحدة على الأقل.",
    },
    "payment.failed": {
        "en": "Could not start the payment. Please try again.",
        "ar": "تعذر بدء عملية الدفع. يرجى المحاولة مرة أخرى.",
    },

    # Listing placeholders
    "placeholder.name": {"en": "Untitled Listing", "ar": "عقار بدون عنوان"},
    "placeholder.description": {"en": "No description available", "ar": "لا يوجد وصف متاح"},
    "placeholder.location": {"en": "Location not available", "ar": "موقع غير متاح"},
}


def normalize_language(lang: str | None, default: str = "en") -> str:
    """Return ``lang`` if supported, else ``default``."""
    if lang and lang.lower() in SUPPORTED_LANGUAGES:
        return lang.lower()
    return default


def other_language(lang: str) -> str:
    """The opposite of ``lang`` in the ar/en pair."""
    return "en" if lang == "ar" else "ar"


def t(key: str, lang: str = "en", **params: object) -> str:
    """
    Look up a localized message.

    Args:
        key: Message key
        lang: 'ar' or 'en'
        **params: Values interpolated into the message

    Returns:
        The localized message, or the key itself if it is unknown
    """
    entry = MESSAGES.get(key)
    if entry is None:
        return key
    text = entry.get(normalize_language(lang), entry["en"])
    return text.format(**params) if params else text
