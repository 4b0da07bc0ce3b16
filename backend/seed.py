# Seed data - sample Malaysian veterinary clinics for local runs and tests
from typing import Dict, List

from store import InMemoryClinicStore

STANDARD_HOURS = {
    "monday": "09:00 - 18:00",
    "tuesday": "09:00 - 18:00",
    "wednesday": "09:00 - 18:00",
    "thursday": "09:00 - 18:00",
    "friday": "09:00 - 18:00",
    "saturday": "09:00 - 14:00",
    "sunday": "Closed",
}

EXTENDED_HOURS = {
    "monday": "08:00 - 20:00",
    "tuesday": "08:00 - 20:00",
    "wednesday": "08:00 - 20:00",
    "thursday": "08:00 - 20:00",
    "friday": "08:00 - 20:00",
    "saturday": "08:00 - 16:00",
    "sunday": "10:00 - 14:00",
}

ALWAYS_OPEN = {day: "24 Hours" for day in STANDARD_HOURS}

SPLIT_HOURS = {
    "monday": "09:00 - 12:00, 14:00 - 18:00",
    "tuesday": "09:00 - 12:00, 14:00 - 18:00",
    "wednesday": "Closed",
    "thursday": "09:00 - 12:00, 14:00 - 18:00",
    "friday": "09:00 - 12:00, 14:00 - 18:00",
    "saturday": "09:00 - 13:00",
    "sunday": "Closed",
}


def seed_records() -> List[Dict]:
    """Ten clinics: three in Penang, three in Selangor, one archived"""
    return [
        {
            "id": "klvet-01",
            "name": "Kuala Lumpur Animal Medical Centre",
            "street": "12 Jalan Ampang",
            "city": "Kuala Lumpur",
            "state": "Kuala Lumpur",
            "postcode": "50450",
            "phone": "+60 3-2161 0000",
            "email": "hello@klamc.my",
            "website": "https://klamc.my",
            "emergency": True,
            "emergency_hours": "24/7",
            "emergency_details": "Walk-in trauma and critical care",
            "hours": ALWAYS_OPEN,
            "animals_treated": ["Dogs", "Cats", "Rabbits"],
            "specializations": ["Surgery", "Emergency Medicine", "Cardiology"],
            "services_offered": ["Vaccination", "X-Ray", "Ultrasound", "Laboratory Tests"],
            "verification_status": "verified",
        },
        {
            "id": "pj-paws-02",
            "name": "PJ Paws Veterinary Clinic",
            "street": "8 Jalan SS2/24",
            "city": "Petaling Jaya",
            "state": "Selangor",
            "postcode": "47300",
            "phone": "+60 3-7877 1234",
            "email": "care@pjpaws.my",
            "hours": STANDARD_HOURS,
            "animals_treated": ["Dogs", "Cats"],
            "specializations": ["Dentistry"],
            "services_offered": ["Dental Care", "Grooming"],
            "verification_status": "verified",
            "owner_id": "owner-1",
        },
        {
            "id": "shah-alam-03",
            "name": "Shah Alam Exotic Pet Hospital",
            "street": "21 Persiaran Kayangan",
            "city": "Shah Alam",
            "state": "Selangor",
            "postcode": "40000",
            "phone": "+60 3-5511 2233",
            "website": "https://exoticpets.my",
            "hours": EXTENDED_HOURS,
            "animals_treated": ["Birds", "Reptiles", "Exotic Pets"],
            "specializations": ["Exotic Animal Medicine"],
            "services_offered": ["Health Check-ups", "Boarding"],
            "verification_status": "verified",
        },
        {
            "id": "klang-04",
            "name": "Klang Valley Vet Care",
            "street": "3 Jalan Tengku Kelana",
            "city": "Klang",
            "state": "Selangor",
            "postcode": "41000",
            "phone": "+60 3-3371 9090",
            "emergency": True,
            "hours": SPLIT_HOURS,
            "animals_treated": ["Dogs", "Cats", "Farm Animals"],
            "specializations": [],
            "services_offered": ["Spay/Neuter", "Microchipping"],
            "verification_status": "pending",
        },
        {
            "id": "penang-05",
            "name": "Georgetown Pet Clinic",
            "street": "45 Lebuh Chulia",
            "city": "George Town",
            "state": "Penang",
            "postcode": "10200",
            "phone": "+60 4-261 5566",
            "hours": STANDARD_HOURS,
            "animals_treated": ["Dogs", "Cats"],
            "specializations": ["Dermatology"],
            "services_offered": ["Grooming", "Pharmacy"],
            "verification_status": "verified",
        },
        {
            "id": "penang-06",
            "name": "Bayan Lepas Animal Hospital",
            "street": "2 Jalan Sultan Azlan Shah",
            "city": "Bayan Lepas",
            "state": "Penang",
            "postcode": "11900",
            "phone": "+60 4-643 7788",
            "email": "info@blah.my",
            "emergency": True,
            "emergency_hours": "Nightly 18:00 - 09:00",
            "hours": EXTENDED_HOURS,
            "animals_treated": ["Dogs", "Cats", "Birds"],
            "specializations": ["Orthopedics", "Surgery"],
            "services_offered": ["Surgery", "X-Ray"],
            "verification_status": "verified",
        },
        {
            "id": "penang-07",
            "name": "Butterworth Vet Centre",
            "street": "17 Jalan Bagan Luar",
            "city": "Butterworth",
            "state": "Penang",
            "postcode": "12000",
            "hours": SPLIT_HOURS,
            "animals_treated": ["Farm Animals"],
            "specializations": [],
            "services_offered": [],
            "verification_status": "pending",
        },
        {
            "id": "jb-08",
            "name": "Johor Bahru Companion Animal Clinic",
            "street": "99 Jalan Wong Ah Fook",
            "city": "Johor Bahru",
            "state": "Johor",
            "postcode": "80000",
            "phone": "+60 7-224 3344",
            "website": "https://jbcompanion.my",
            "hours": STANDARD_HOURS,
            "animals_treated": ["Dogs", "Cats", "Hamsters"],
            "specializations": ["Internal Medicine"],
            "services_offered": ["Vaccination", "Senior Pet Care"],
            "verification_status": "verified",
        },
        {
            "id": "ipoh-09",
            "name": "Ipoh Night Vet",
            "street": "5 Jalan Sultan Idris Shah",
            "city": "Ipoh",
            "state": "Perak",
            "postcode": "30000",
            "phone": "+60 5-255 6677",
            "hours": {**STANDARD_HOURS, "friday": "20:00 - 02:00", "saturday": "20:00 - 02:00"},
            "animals_treated": ["Dogs", "Cats"],
            "specializations": [],
            "services_offered": ["Emergency Care"],
            "verification_status": "verified",
        },
        {
            "id": "kuantan-10",
            "name": "Kuantan Pet Wellness",
            "street": "14 Jalan Besar",
            "city": "Kuantan",
            "state": "Pahang",
            "postcode": "25000",
            "hours": STANDARD_HOURS,
            "animals_treated": ["Cats"],
            "specializations": [],
            "services_offered": ["Nutritional Counseling"],
            "verification_status": "archived",
        },
    ]


def seed_data(store: InMemoryClinicStore) -> None:
    """Reset the store to the sample clinics"""
    store.load(seed_records())
