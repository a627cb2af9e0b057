"""
Standard news categories and the rule table used to map free-text feed
labels onto them.

``CATEGORY_MAPPINGS`` is ordered: substring matching walks it in insertion
order and the first hit wins, so more specific keys must come before the
generic ones they contain.
"""

from typing import Dict, List

FALLBACK_CATEGORY = "Diğer"

STANDARD_CATEGORIES: List[str] = [
    "Spor",
    "Ekonomi",
    "Siyaset",
    "Teknoloji",
    "Sağlık",
    "Eğitim",
    "Kültür-Sanat",
    "Yaşam",
    "Gündem",
    "Dünya",
    "Magazin",
    "Bilim",
    "Otomobil",
    "Yerel",
    "Asayiş",
    "Çevre",
    "Turizm",
    "Gıda",
    "Emlak",
    "Hukuk",
    FALLBACK_CATEGORY,
]

CATEGORY_MAPPINGS: Dict[str, str] = {
    # Spor
    "spor": "Spor",
    "futbol": "Spor",
    "basketbol": "Spor",
    "voleybol": "Spor",
    "fikstur": "Spor",
    "fikstür": "Spor",
    "transfer": "Spor",
    "şampiyonlar ligi": "Spor",
    "süper lig": "Spor",
    # Ekonomi
    "ekonomi": "Ekonomi",
    "borsa": "Ekonomi",
    "döviz": "Ekonomi",
    "piyasa": "Ekonomi",
    "finans": "Ekonomi",
    "iş dünyası": "Ekonomi",
    "ticaret": "Ekonomi",
    # Siyaset
    "siyaset": "Siyaset",
    "politika": "Siyaset",
    "seçim": "Siyaset",
    "meclis": "Siyaset",
    # Teknoloji
    "bilim teknoloji": "Teknoloji",
    "teknoloji": "Teknoloji",
    "yazılım": "Teknoloji",
    "donanım": "Teknoloji",
    "internet": "Teknoloji",
    "oyun": "Teknoloji",
    # Sağlık
    "sağlık": "Sağlık",
    "hastane": "Sağlık",
    "doktor": "Sağlık",
    "tıp": "Sağlık",
    "covid": "Sağlık",
    "pandemi": "Sağlık",
    # Eğitim
    "eğitim": "Eğitim",
    "okul": "Eğitim",
    "üniversite": "Eğitim",
    "öğrenci": "Eğitim",
    "sınav": "Eğitim",
    "yks": "Eğitim",
    "lgs": "Eğitim",
    # Kültür-Sanat
    "kültür sanat": "Kültür-Sanat",
    "kültür": "Kültür-Sanat",
    "sanat": "Kültür-Sanat",
    "sinema": "Kültür-Sanat",
    "tiyatro": "Kültür-Sanat",
    "müzik": "Kültür-Sanat",
    "konser": "Kültür-Sanat",
    "sergi": "Kültür-Sanat",
    # Yaşam
    "yaşam": "Yaşam",
    "hayat": "Yaşam",
    "lifestyle": "Yaşam",
    "kadın": "Yaşam",
    "erkek": "Yaşam",
    "moda": "Yaşam",
    "güzellik": "Yaşam",
    # Gündem
    "gündem": "Gündem",
    "güncel": "Gündem",
    "son dakika": "Gündem",
    "genel": "Gündem",
    "haberler": "Gündem",
    # Yerel
    "gaziantep haber": "Yerel",
    "gaziantep": "Yerel",
    "şehitkamil": "Yerel",
    "şahinbey": "Yerel",
    "istanbul": "Yerel",
    "ankara": "Yerel",
    "izmir": "Yerel",
    "yerel": "Yerel",
    "kent": "Yerel",
    # Asayiş
    "asayiş": "Asayiş",
    "polis": "Asayiş",
    "güvenlik": "Asayiş",
    "kaza": "Asayiş",
    # Hukuk
    "hukuk": "Hukuk",
    "adliye": "Hukuk",
    "mahkeme": "Hukuk",
    # Bilim
    "bilim": "Bilim",
    "araştırma": "Bilim",
    "uzay": "Bilim",
    "keşif": "Bilim",
    # Magazin
    "magazin": "Magazin",
    "ünlü": "Magazin",
    "dedikodu": "Magazin",
    # Dünya
    "dünya": "Dünya",
    "uluslararası": "Dünya",
    "avrupa": "Dünya",
    "amerika": "Dünya",
    "asya": "Dünya",
    # Otomobil
    "otomobil": "Otomobil",
    "otomotiv": "Otomobil",
    "araba": "Otomobil",
    # Çevre
    "hayvanlar alemi": "Çevre",
    "hayvan": "Çevre",
    "doğa": "Çevre",
    "çevre": "Çevre",
    "iklim": "Çevre",
    # Turizm
    "turizm": "Turizm",
    "tatil": "Turizm",
    "gezi": "Turizm",
    "seyahat": "Turizm",
    # Gıda
    "gıda": "Gıda",
    "yemek": "Gıda",
    "mutfak": "Gıda",
    "tarım": "Gıda",
    # Emlak
    "emlak": "Emlak",
    "konut": "Emlak",
    "gayrimenkul": "Emlak",
}

CATEGORY_NORMALIZATION_PROMPT = f"""
Sen haber kategorilerini sınıflandıran bir editörsün. Sana verilen kategori
etiketlerini aşağıdaki standart kategorilerden biriyle eşleştir.

Standart kategoriler:
{", ".join(STANDARD_CATEGORIES)}

Kurallar:
1. Her etiketi yalnızca BİR standart kategoriyle eşleştir.
2. Hiçbir kategori uymuyorsa "{FALLBACK_CATEGORY}" kullan.
3. Büyük/küçük harf farkını önemseme.
4. Eş anlamlı etiketleri aynı kategoriye eşleştir (örneğin "FİKSTÜR" -> "Spor").
5. Şehir ve ilçe isimleri "Yerel" kategorisine gider.

Örnek girdi: ["SPOR", "Gaziantep Haber", "FİKSTÜR", "EKONOMİ"]
Örnek çıktı: {{"SPOR": "Spor", "Gaziantep Haber": "Yerel", "FİKSTÜR": "Spor", "EKONOMİ": "Ekonomi"}}
""".strip()


def is_standard_category(name: str) -> bool:
    return name in STANDARD_CATEGORIES
