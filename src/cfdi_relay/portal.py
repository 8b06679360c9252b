"""Logical elements of the verification page and their SAT selectors.

The session only ever names elements through ``Element``. Which DOM node
backs each name is decided here and nowhere else.
"""

import enum

from .protocol import RESULT_FIELDS


class Element(str, enum.Enum):
    UUID_INPUT = "uuid_input"
    ISSUER_INPUT = "issuer_input"
    RECEIVER_INPUT = "receiver_input"
    CAPTCHA_IMAGE = "captcha_image"
    CAPTCHA_INPUT = "captcha_input"
    SEARCH_BUTTON = "search_button"
    RESULT_PANEL = "result_panel"
    ERROR_PANEL = "error_panel"
    ERROR_TEXT = "error_text"

    # Result fields, named after CfdiResult attributes
    RFC_EMISOR = "rfc_emisor"
    NOMBRE_EMISOR = "nombre_emisor"
    RFC_RECEPTOR = "rfc_receptor"
    NOMBRE_RECEPTOR = "nombre_receptor"
    FOLIO_FISCAL = "folio_fiscal"
    FECHA_EXPEDICION = "fecha_expedicion"
    TOTAL_CFDI = "total_cfdi"
    EFECTO_COMPROBANTE = "efecto_comprobante"
    ESTADO_CFDI = "estado_cfdi"
    ESTATUS_CANCELACION = "estatus_cancelacion"


RESULT_ELEMENTS = tuple(Element(name) for name in RESULT_FIELDS)

SAT_SELECTORS = {
    Element.UUID_INPUT: "#ctl00_MainContent_TxtUUID",
    Element.ISSUER_INPUT: "#ctl00_MainContent_TxtRfcEmisor",
    Element.RECEIVER_INPUT: "#ctl00_MainContent_TxtRfcReceptor",
    Element.CAPTCHA_IMAGE: "#ctl00_MainContent_ImgCaptcha",
    Element.CAPTCHA_INPUT: "#ctl00_MainContent_TxtCaptchaNumbers",
    Element.SEARCH_BUTTON: "#ctl00_MainContent_BtnBusqueda",
    Element.RESULT_PANEL: "#ctl00_MainContent_PnlResultados",
    Element.ERROR_PANEL: "#ctl00_MainContent_pnlErrorCaptcha",
    Element.ERROR_TEXT: "#ctl00_MainContent_lblError",
    Element.RFC_EMISOR: "#ctl00_MainContent_LblRfcEmisor",
    Element.NOMBRE_EMISOR: "#ctl00_MainContent_LblNombreEmisor",
    Element.RFC_RECEPTOR: "#ctl00_MainContent_LblRfcReceptor",
    Element.NOMBRE_RECEPTOR: "#ctl00_MainContent_LblNombreReceptor",
    Element.FOLIO_FISCAL: "#ctl00_MainContent_LbllUuid",
    Element.FECHA_EXPEDICION: "#ctl00_MainContent_LblFechaEmision",
    Element.TOTAL_CFDI: "#ctl00_MainContent_LblMonto",
    Element.EFECTO_COMPROBANTE: "#ctl00_MainContent_LblEfectoComprobante",
    Element.ESTADO_CFDI: "#ctl00_MainContent_LblEstado",
    Element.ESTATUS_CANCELACION: "#ctl00_MainContent_LblEsCancelable",
}


__all__ = [
    "Element",
    "RESULT_ELEMENTS",
    "SAT_SELECTORS",
]
