"""
Arabic-first message catalog.

Every user-facing string goes through ``t(key)``. Arabic is the default
language; English is kept alongside and used as fallback for missing keys.
"""

from __future__ import annotations

from typing import Dict, Optional

from utils import config

SUPPORTED = ("ar", "en")

MESSAGES: Dict[str, Dict[str, str]] = {
    # errors
    "error.unauthenticated": {
        "ar": "غير مصرح، يجب تسجيل الدخول أولاً",
        "en": "Not authenticated, please sign in first",
    },
    "error.forbidden": {
        "ar": "ليس لديك صلاحية لتنفيذ هذا الإجراء",
        "en": "You are not allowed to perform this action",
    },
    "error.not_found": {"ar": "العنصر غير موجود", "en": "Not found"},
    "error.product_not_found": {
        "ar": "المنتج غير موجود",
        "en": "Product {pid} not found",
    },
    "error.order_not_found": {
        "ar": "الطلب غير موجود",
        "en": "Order {ono} not found",
    },
    "error.user_not_found": {"ar": "المستخدم غير موجود", "en": "User not found"},
    "error.invalid_input": {"ar": "بيانات غير صالحة", "en": "Invalid input"},
    "error.empty_cart": {"ar": "السلة فارغة", "en": "The cart is empty"},
    "error.invalid_quantity": {
        "ar": "الكمية يجب أن تكون عدداً صحيحاً موجباً",
        "en": "Quantity must be a positive integer",
    },
    "error.invalid_status": {
        "ar": "حالة الطلب غير صالحة",
        "en": "Unknown order status: {status}",
    },
    "error.invalid_transition": {
        "ar": "لا يمكن نقل الطلب إلى هذه الحالة",
        "en": "Order cannot move from {current} to {requested}",
    },
    "error.email_taken": {
        "ar": "المستخدم موجود بالفعل",
        "en": "A user with this email already exists",
    },
    "error.insufficient_stock": {
        "ar": "الكمية المطلوبة غير متوفرة في المخزون",
        "en": "Insufficient stock for product {pid}: requested {requested}, available {available}",
    },
    "error.conflict": {
        "ar": "الخادم مشغول بطلب آخر، يرجى المحاولة مرة أخرى",
        "en": "The store is busy with a concurrent request, please retry",
    },
    "error.server": {"ar": "حدث خطأ في الخادم", "en": "Internal server error"},
    # order statuses
    "status.PENDING": {"ar": "معلق", "en": "Pending"},
    "status.CONFIRMED": {"ar": "مؤكد", "en": "Confirmed"},
    "status.SHIPPED": {"ar": "تم الشحن", "en": "Shipped"},
    "status.DELIVERED": {"ar": "تم التسليم", "en": "Delivered"},
    "status.CANCELLED": {"ar": "ملغي", "en": "Cancelled"},
    # roles
    "role.customer": {"ar": "عميل", "en": "Customer"},
    "role.admin": {"ar": "مدير", "en": "Administrator"},
    # notifications
    "cart.added": {
        "ar": "تم إضافة {qty} من {name} إلى السلة",
        "en": "Added {qty} x {name} to the cart",
    },
    "cart.updated": {"ar": "تم تحديث الكمية في السلة", "en": "Cart quantity updated"},
    "cart.removed": {"ar": "تم حذف المنتج من السلة", "en": "Item removed from cart"},
    "cart.cleared": {"ar": "تم إفراغ السلة", "en": "Cart cleared"},
    "order.created": {
        "ar": "تم إنشاء الطلب بنجاح! رقم الطلب {ono}",
        "en": "Order placed. Your order number is {ono}",
    },
    "order.confirmed": {"ar": "تم تأكيد الطلب بنجاح", "en": "Order confirmed"},
    "order.status_updated": {
        "ar": "تم تحديث حالة الطلب",
        "en": "Order status updated",
    },
    "product.created": {"ar": "تم إضافة المنتج بنجاح", "en": "Product created"},
    "product.updated": {"ar": "تم تحديث المنتج بنجاح", "en": "Product updated"},
    "product.deleted": {"ar": "تم حذف المنتج بنجاح", "en": "Product deleted"},
    "account.created": {
        "ar": "تم إنشاء الحساب بنجاح",
        "en": "Account created successfully",
    },
    "account.login_failed": {
        "ar": "البريد الإلكتروني أو كلمة المرور غير صحيحة",
        "en": "Invalid email or password",
    },
    "account.welcome": {"ar": "أهلاً {name}!", "en": "Hello {name}!"},
    "account.logged_out": {"ar": "تم تسجيل الخروج", "en": "Logged out"},
    "profile.updated": {"ar": "تم تحديث الملف الشخصي", "en": "Profile updated"},
    # payment
    "payment.COD": {"ar": "الدفع عند الاستلام", "en": "Cash on delivery"},
    # terminal storefront
    "ui.title": {"ar": "سوق", "en": "Souq"},
    "ui.yes": {"ar": "نعم", "en": "Yes"},
    "ui.no": {"ar": "لا", "en": "No"},
    "ui.ok": {"ar": "حسناً", "en": "OK"},
    "ui.back": {"ar": "رجوع", "en": "Go Back"},
    "ui.refresh": {"ar": "تحديث", "en": "Refresh"},
    "ui.quit": {"ar": "خروج", "en": "Quit"},
    "ui.quit_confirm": {
        "ar": "هل أنت متأكد من الخروج؟",
        "en": "Are you sure you want to quit?",
    },
    "ui.logout": {"ar": "تسجيل الخروج", "en": "Log out"},
    "ui.logout_confirm": {
        "ar": "هل تريد تسجيل الخروج؟",
        "en": "Are you sure you want to log out?",
    },
    "ui.resize": {"ar": "يرجى تكبير النافذة", "en": "Resize to fit the content"},
    "ui.user_info": {"ar": "بيانات المستخدم", "en": "User Info"},
    "ui.menu": {"ar": "القائمة", "en": "Menu"},
    "ui.name": {"ar": "الاسم", "en": "Name"},
    "ui.email": {"ar": "البريد الإلكتروني", "en": "Email"},
    "ui.password": {"ar": "كلمة المرور", "en": "Password"},
    "ui.phone": {"ar": "رقم الهاتف", "en": "Phone"},
    "ui.address": {"ar": "العنوان", "en": "Address"},
    "ui.role": {"ar": "الدور", "en": "Role"},
    "ui.login": {"ar": "تسجيل الدخول", "en": "Login"},
    "ui.signup": {"ar": "إنشاء حساب", "en": "Sign up"},
    "ui.fill_all": {
        "ar": "يرجى تعبئة جميع الحقول",
        "en": "Make sure all inputs are filled.",
    },
    "mode.catalog": {"ar": "المنتجات", "en": "Products"},
    "mode.cart": {"ar": "السلة", "en": "Cart"},
    "mode.orders": {"ar": "طلباتي", "en": "My Orders"},
    "mode.profile": {"ar": "الملف الشخصي", "en": "Profile"},
    "mode.admin_products": {"ar": "إدارة المنتجات", "en": "Manage Products"},
    "mode.admin_orders": {"ar": "إدارة الطلبات", "en": "Manage Orders"},
    "ui.search": {"ar": "ابحث عن منتج...", "en": "Search for a product..."},
    "ui.product": {"ar": "المنتج", "en": "Product"},
    "ui.category": {"ar": "الفئة", "en": "Category"},
    "ui.price": {"ar": "السعر", "en": "Price"},
    "ui.stock": {"ar": "المخزون", "en": "Stock"},
    "ui.description": {"ar": "الوصف", "en": "Description"},
    "ui.active": {"ar": "نشط", "en": "Active"},
    "ui.image": {"ar": "الصورة", "en": "Image"},
    "ui.quantity": {"ar": "الكمية", "en": "Quantity"},
    "ui.unit_price": {"ar": "سعر الوحدة", "en": "Unit Price"},
    "ui.line_total": {"ar": "المجموع", "en": "Line Total"},
    "ui.add_to_cart": {"ar": "أضف إلى السلة", "en": "Add to Cart"},
    "ui.update_cart": {"ar": "تحديث السلة", "en": "Update Cart"},
    "ui.out_of_stock": {"ar": "غير متوفر", "en": "Out of Stock"},
    "ui.edit": {"ar": "تعديل", "en": "Edit"},
    "ui.remove": {"ar": "حذف", "en": "Remove"},
    "ui.remove_confirm": {
        "ar": "هل تريد حذف هذا المنتج من السلة؟",
        "en": "Do you really want to remove this item from cart?",
    },
    "ui.clear_cart": {"ar": "إفراغ السلة", "en": "Clear Cart"},
    "ui.clear_confirm": {
        "ar": "هل تريد حذف جميع المنتجات من السلة؟",
        "en": "Do you really want to remove all items from cart?",
    },
    "ui.checkout": {"ar": "إتمام الطلب", "en": "Checkout"},
    "ui.cart_total": {"ar": "إجمالي السلة: {total}", "en": "Total Cart Value: {total}"},
    "ui.cart_estimate_note": {
        "ar": "السعر النهائي يحسب عند إنشاء الطلب",
        "en": "Final prices are confirmed when the order is placed",
    },
    "ui.order_summary": {"ar": "ملخص الطلب", "en": "Order Summary"},
    "ui.subtotal": {"ar": "المجموع الفرعي", "en": "Subtotal"},
    "ui.payment_method": {"ar": "طريقة الدفع", "en": "Payment method"},
    "ui.place_order": {"ar": "تأكيد الشراء", "en": "Place Order"},
    "ui.place_order_confirm": {
        "ar": "هل تريد إنشاء الطلب؟",
        "en": "Place order? This cannot be undone.",
    },
    "ui.admin_checkout_hint": {
        "ar": "أنت مسجل كمدير، تم تحويلك إلى لوحة التحكم",
        "en": "Administrators are redirected to the back office",
    },
    "ui.order": {"ar": "طلب", "en": "Order"},
    "ui.order_no": {"ar": "رقم الطلب", "en": "Order No"},
    "ui.date": {"ar": "التاريخ", "en": "Date"},
    "ui.status": {"ar": "الحالة", "en": "Status"},
    "ui.total": {"ar": "الإجمالي", "en": "Total"},
    "ui.customer": {"ar": "العميل", "en": "Customer"},
    "ui.items": {"ar": "المنتجات", "en": "Items"},
    "ui.confirm_order": {"ar": "تأكيد الطلب", "en": "Confirm Order"},
    "ui.select_order": {
        "ar": "اختر طلباً لعرض تفاصيله",
        "en": "Select an order to view its details.",
    },
    "ui.no_orders": {"ar": "لا توجد طلبات", "en": "No orders yet"},
    "ui.set_status": {"ar": "تحديث الحالة", "en": "Set Status"},
    "ui.all_statuses": {"ar": "كل الحالات", "en": "All statuses"},
    "ui.new_product": {"ar": "منتج جديد", "en": "New Product"},
    "ui.save": {"ar": "حفظ", "en": "Save"},
    "ui.delete": {"ar": "حذف", "en": "Delete"},
    "ui.delete_product_confirm": {
        "ar": "هل تريد حذف هذا المنتج؟",
        "en": "Delete this product? Existing orders keep their copy.",
    },
    "ui.nothing_to_update": {"ar": "لا يوجد تغيير", "en": "Nothing to update."},
}


def current_lang(lang: Optional[str] = None) -> str:
    lang = (lang or config.LANG or "ar").lower()
    return lang if lang in SUPPORTED else "ar"


def t(key: str, lang: Optional[str] = None, **fmt) -> str:
    """Translate ``key``; falls back to English, then to the key itself."""
    entry = MESSAGES.get(key)
    if entry is None:
        return key
    text = entry.get(current_lang(lang)) or entry.get("en", key)
    if fmt:
        try:
            return text.format(**fmt)
        except (KeyError, IndexError):
            return text
    return text
